"""Service catalog: template discovery, unit installation and orphan detection."""
import os
import tempfile
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from hearth.core.errors import TemplateError, WriteError
from hearth.core.logger import get_logger
from hearth.core.renderer import ServiceTemplate, render

logger = get_logger(__name__)

UNIT_FILE_MODE = 0o644


class ServiceCatalog:
    """Maps templates in a source directory to unit files in the Quadlet directory.

    Example:
        catalog = ServiceCatalog(Path("configs"), Path("~/.config/containers/systemd"))
        for template in catalog.discover():
            catalog.materialize(template, bindings)
    """

    def __init__(self, templates_dir: Path, unit_dir: Path, extension: str = "container"):
        self.templates_dir = Path(templates_dir).expanduser()
        self.unit_dir = Path(unit_dir).expanduser()
        self.extension = extension.lstrip('.')

    def discover(self) -> List[ServiceTemplate]:
        """Read every ``*.<extension>`` file, ordered by service name.

        Returns:
            Templates sorted lexicographically by name (empty if the directory is missing)

        Raises:
            TemplateError: If a template file cannot be read
        """
        if not self.templates_dir.is_dir():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return []

        templates = []
        for path in self.templates_dir.glob(f"*.{self.extension}"):
            if not path.is_file():
                continue
            try:
                text = path.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                raise TemplateError(f"Cannot read template {path}: {e}") from e
            templates.append(
                ServiceTemplate(name=path.stem, extension=self.extension, text=text, source=path)
            )

        templates.sort(key=lambda t: t.name)
        logger.debug(f"Discovered {len(templates)} templates in {self.templates_dir}")
        return templates

    def get(self, name: str) -> Optional[ServiceTemplate]:
        """Return the template with the given service name, if any."""
        for template in self.discover():
            if template.name == name:
                return template
        return None

    def unit_path(self, template: ServiceTemplate, destination_dir: Optional[Path] = None) -> Path:
        return Path(destination_dir or self.unit_dir) / template.filename

    def materialize(
        self,
        template: ServiceTemplate,
        bindings: Mapping[str, str],
        destination_dir: Optional[Path] = None,
    ) -> Path:
        """Render a template and atomically install it as a unit file.

        The unit is written to a temporary file in the destination directory
        and moved over the old one, so readers only ever see the previous or
        the new complete file.

        Returns:
            Path of the installed unit file

        Raises:
            UnboundVariable: If the template references an unbound variable
            WriteError: If the unit cannot be written
        """
        unit = render(template, bindings)
        target = self.unit_path(template, destination_dir)
        payload = unit.text.encode('utf-8')

        previous = None
        if target.is_file():
            try:
                previous = target.read_bytes()
            except OSError:
                previous = None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create unit directory {target.parent}: {e}") from e

        _atomic_write(target, payload)

        if previous is None:
            logger.info(f"Installed {target}")
        elif previous == payload:
            logger.debug(f"{target} unchanged")
        else:
            logger.info(f"Updated {target}")
        return target

    def ensure_data_dir(self, template: ServiceTemplate, data_root: Optional[str]) -> Optional[Path]:
        """Create ``<data_root>/<service>`` for persistent app data.

        Returns:
            The directory, or None when no data root is configured

        Raises:
            WriteError: If the directory cannot be created
        """
        if not data_root:
            return None

        data_dir = Path(data_root).expanduser() / template.name
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create data directory {data_dir}: {e}") from e
        return data_dir

    def find_orphans(self, templates: Sequence[ServiceTemplate]) -> List[str]:
        """List installed units that no longer have a template.

        Orphans are only reported; removing or disabling them is left to the user.
        """
        if not self.unit_dir.is_dir():
            return []

        known = {t.name for t in templates}
        orphans = [
            path.stem
            for path in self.unit_dir.glob(f"*.{self.extension}")
            if path.is_file() and path.stem not in known
        ]
        return sorted(orphans)


def _atomic_write(target: Path, payload: bytes) -> None:
    """Write payload to target via a temp file in the same directory and os.replace."""
    fd, temp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_name, UNIT_FILE_MODE)
        os.replace(temp_name, target)
    except OSError as e:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise WriteError(f"Cannot write {target}: {e}") from e
