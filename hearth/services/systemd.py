"""systemd --user control for Quadlet-generated services."""
import subprocess
from typing import List

from hearth.core.errors import EnableError, ManagerTimeout
from hearth.core.logger import get_logger

logger = get_logger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"
FAILED = "failed"


class SystemdUserManager:
    """Runs ``systemctl --user`` with a bounded timeout on every call."""

    def __init__(self, timeout: float = 30.0, mock: bool = False):
        self.timeout = timeout
        self.mock = mock

    def _systemctl(self, *args: str) -> subprocess.CompletedProcess:
        cmd: List[str] = ['systemctl', '--user', *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ManagerTimeout(
                f"'{' '.join(cmd)}' timed out after {self.timeout:g}s"
            ) from e
        except FileNotFoundError as e:
            raise EnableError("systemctl not found; is systemd installed?") from e

    def daemon_reload(self) -> None:
        """Make systemd rerun the Quadlet generator and pick up new units.

        Raises:
            EnableError: If the reload fails or times out
        """
        if self.mock:
            logger.info("MOCK: Would run systemctl --user daemon-reload")
            return

        result = self._systemctl('daemon-reload')
        if result.returncode != 0:
            raise EnableError(f"daemon-reload failed: {result.stderr.strip()}")

    def enable_and_start(self, name: str) -> None:
        """Enable and start a service; safe to repeat for a running service.

        Raises:
            EnableError: If systemd rejects the unit
            ManagerTimeout: If systemctl does not answer in time
        """
        if self.mock:
            logger.info(f"MOCK: Would enable and start {name}")
            return

        result = self._systemctl('enable', '--now', name)
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            raise EnableError(f"Failed to enable {name}: {detail}")

    def query_status(self, name: str) -> str:
        """Return the unit's active state (active, inactive, failed, activating, ...).

        ``is-active`` exits non-zero for anything but active, so the exit code
        is not treated as an error here.

        Raises:
            ManagerTimeout: If systemctl does not answer in time
        """
        if self.mock:
            logger.info(f"MOCK: Would query status of {name}")
            return ACTIVE

        result = self._systemctl('is-active', name)
        state = result.stdout.strip().splitlines()
        return state[0] if state else "unknown"
