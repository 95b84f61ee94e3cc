"""Status summary with access endpoints derived from <NAME>_PORT bindings."""
from typing import List, Mapping, Optional, Tuple

from hearth.core.reconciler import CANCELLED, ReconcileResult, ServiceRecord, ServiceState

UNKNOWN_ENDPOINT = "endpoint unknown"
UNKNOWN_HOST = "<unknown-host>"

# Severity tags for summary lines
OK = "ok"
WARN = "warn"
ERROR = "error"


def port_key(service_name: str) -> str:
    """Name of the binding holding a service's published port (jellyfin -> JELLYFIN_PORT)."""
    return f"{service_name.upper()}_PORT"


def endpoint(service_name: str, bindings: Mapping[str, str], host_variable: str = "SERVER_IP") -> Optional[str]:
    """Return ``http://<host>:<port>`` for a service, or None if its port is unbound.

    An unbound host only replaces the host part with a marker; the port still resolves.
    """
    port = bindings.get(port_key(service_name))
    if not port:
        return None
    host = bindings.get(host_variable) or UNKNOWN_HOST
    return f"http://{host}:{port}"


def describe(record: ServiceRecord, bindings: Mapping[str, str], host_variable: str = "SERVER_IP") -> str:
    """One summary line for a service record."""
    if record.state is ServiceState.ACTIVE:
        url = endpoint(record.name, bindings, host_variable)
        return f"{record.name}: active ({url or UNKNOWN_ENDPOINT})"

    if record.state is ServiceState.FAILED:
        return f"{record.name}: failed ({record.error_kind}: {record.error})"

    if record.error_kind == CANCELLED:
        return f"{record.name}: {record.state.value} ({CANCELLED}: {record.error})"

    if record.state is ServiceState.ENABLED:
        observed = record.observed or "unknown"
        return f"{record.name}: {observed} (deployed, not running)"

    if record.state is ServiceState.MATERIALIZED:
        return f"{record.name}: not started ({record.error_kind or 'pending'})"

    return f"{record.name}: not deployed ({record.error_kind}: {record.error})"


def summary_lines(
    result: ReconcileResult,
    bindings: Mapping[str, str],
    host_variable: str = "SERVER_IP",
) -> List[Tuple[str, str]]:
    """(severity, line) pairs for every record, orphan and the cancel note."""
    lines: List[Tuple[str, str]] = []
    for record in result.records:
        if record.state is ServiceState.ACTIVE:
            severity = OK
        elif record.state is ServiceState.ENABLED and record.error_kind != CANCELLED:
            severity = WARN
        else:
            severity = ERROR
        lines.append((severity, describe(record, bindings, host_variable)))

    for orphan in result.orphans:
        lines.append((WARN, f"orphan: {orphan} (unit file present, no template; not removed)"))
    if result.cancelled:
        lines.append((WARN, "run cancelled: remaining services were not processed"))
    return lines


def report(
    result: ReconcileResult,
    bindings: Mapping[str, str],
    host_variable: str = "SERVER_IP",
) -> str:
    """Render the human-readable summary of a reconcile or observe pass.

    A missing port binding only degrades that service's endpoint to
    "endpoint unknown"; it never fails the report.
    """
    return "\n".join(line for _, line in summary_lines(result, bindings, host_variable))
