"""Lifecycle reconciliation: converge running services to the template set.

Each service moves through UNDEPLOYED -> MATERIALIZED -> ENABLED -> ACTIVE,
or ends in FAILED when systemd rejects or loses it.

Phases run in order for the whole catalog (materialize all, reload once,
enable all, settle once, query all) and a failure only ends the path of the
service it belongs to.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from hearth.core.catalog import ServiceCatalog
from hearth.core.errors import EnableError, HearthError
from hearth.core.logger import get_logger
from hearth.core.renderer import ServiceTemplate
from hearth.services.systemd import ACTIVE, FAILED

logger = get_logger(__name__)

CANCELLED = "Cancelled"
NOT_INSTALLED = "NotInstalled"


class ServiceState(str, Enum):
    """Reconciliation states of a single service."""

    UNDEPLOYED = "undeployed"
    MATERIALIZED = "materialized"
    ENABLED = "enabled"
    ACTIVE = "active"
    FAILED = "failed"


@dataclass
class ServiceRecord:
    """Runtime view of one service; never persisted."""

    name: str
    state: ServiceState = ServiceState.UNDEPLOYED
    unit_path: Optional[Path] = None
    observed: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    def record_error(self, exc: HearthError) -> None:
        self.error_kind = exc.kind
        self.error = str(exc)

    def fail(self, exc: HearthError) -> None:
        self.state = ServiceState.FAILED
        self.record_error(exc)

    def cancel(self) -> None:
        self.error_kind = CANCELLED
        self.error = "Run cancelled before this step"

    @property
    def deployed(self) -> bool:
        return self.state is not ServiceState.UNDEPLOYED


@dataclass
class ReconcileResult:
    """Records in catalog order plus units with no template."""

    records: List[ServiceRecord] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    cancelled: bool = False

    def terminal_states(self) -> List[Tuple[str, ServiceState]]:
        return [(record.name, record.state) for record in self.records]

    def all_active(self) -> bool:
        return all(record.state is ServiceState.ACTIVE for record in self.records)


class Reconciler:
    """Drives the service manager for every template in a catalog.

    Args:
        catalog: Source of templates and writer of unit files
        manager: Object with daemon_reload(), enable_and_start(name), query_status(name)
        settle_delay: Seconds to wait once after enabling before querying status
        data_root_variable: Binding holding the root for per-service data dirs
        cancel_event: Checked once per loop iteration; set it to stop early
        sleep: Injected for tests
    """

    def __init__(
        self,
        catalog: ServiceCatalog,
        manager,
        settle_delay: float = 3.0,
        data_root_variable: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.catalog = catalog
        self.manager = manager
        self.settle_delay = max(0.0, settle_delay)
        self.data_root_variable = data_root_variable
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep

    def _cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def reconcile(
        self,
        bindings: Mapping[str, str],
        templates: Optional[Sequence[ServiceTemplate]] = None,
    ) -> ReconcileResult:
        """Materialize, enable and check every template in catalog order."""
        if templates is None:
            templates = self.catalog.discover()

        result = ReconcileResult(records=[ServiceRecord(name=t.name) for t in templates])
        result.orphans = self.catalog.find_orphans(templates)
        for orphan in result.orphans:
            logger.warning(f"Unit {orphan} has no template; leaving it in place")

        pairs = list(zip(templates, result.records))

        self._materialize_all(pairs, bindings, result)
        materialized = [r for r in result.records if r.state is ServiceState.MATERIALIZED]
        if result.cancelled:
            for record in materialized:
                record.cancel()
            return result
        if not materialized:
            return result

        try:
            self.manager.daemon_reload()
        except EnableError as e:
            logger.error(f"daemon-reload failed: {e}")
            for record in materialized:
                record.fail(e)
            return result

        self._enable_all(materialized, result)
        enabled = [r for r in result.records if r.state is ServiceState.ENABLED]
        if not enabled or result.cancelled:
            return result

        if self.settle_delay:
            logger.debug(f"Waiting {self.settle_delay:g}s for services to settle")
            self._sleep(self.settle_delay)

        self._observe_all(enabled, result)
        return result

    def _materialize_all(self, pairs, bindings: Mapping[str, str], result: ReconcileResult) -> None:
        data_root = bindings.get(self.data_root_variable) if self.data_root_variable else None
        for template, record in pairs:
            if self._cancelled():
                result.cancelled = True
                record.cancel()
                continue
            logger.info(f"Deploying {template.name}...")
            try:
                self.catalog.ensure_data_dir(template, data_root)
                record.unit_path = self.catalog.materialize(template, bindings)
            except HearthError as e:
                logger.warning(f"{template.name} not deployed: {e}")
                record.record_error(e)
                continue
            record.state = ServiceState.MATERIALIZED

    def _enable_all(self, records: List[ServiceRecord], result: ReconcileResult) -> None:
        for record in records:
            if self._cancelled():
                result.cancelled = True
                record.cancel()
                continue
            try:
                self.manager.enable_and_start(record.name)
            except EnableError as e:
                logger.error(f"{record.name} failed to start: {e}")
                record.fail(e)
                continue
            record.state = ServiceState.ENABLED

    def _observe_all(self, records: List[ServiceRecord], result: ReconcileResult) -> None:
        for record in records:
            if self._cancelled():
                result.cancelled = True
                record.cancel()
                continue
            self._observe(record)

    def _observe(self, record: ServiceRecord) -> None:
        try:
            status = self.manager.query_status(record.name)
        except EnableError as e:
            logger.error(f"Could not query {record.name}: {e}")
            record.fail(e)
            return

        record.observed = status
        if status == ACTIVE:
            record.state = ServiceState.ACTIVE
        elif status == FAILED:
            record.state = ServiceState.FAILED
            record.error_kind = "ServiceFailed"
            record.error = f"systemd reports {record.name} as failed"
            logger.error(record.error)
        else:
            logger.warning(f"{record.name} is {status} after settle delay")

    def observe(self, templates: Optional[Sequence[ServiceTemplate]] = None) -> ReconcileResult:
        """Query current state without changing anything."""
        if templates is None:
            templates = self.catalog.discover()

        result = ReconcileResult(orphans=self.catalog.find_orphans(templates))
        for template in templates:
            record = ServiceRecord(name=template.name)
            result.records.append(record)
            unit_path = self.catalog.unit_path(template)
            if not unit_path.is_file():
                record.error_kind = NOT_INSTALLED
                record.error = f"{unit_path} does not exist"
                continue
            record.unit_path = unit_path
            record.state = ServiceState.ENABLED
            self._observe(record)
        return result
