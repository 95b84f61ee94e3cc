"""Hearth runtime configuration and settings."""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from hearth.core.errors import SettingsError
from hearth.core.logger import get_logger
from hearth.models.settings import DeploySettings

logger = get_logger(__name__)

# Default settings search paths (ordered by proximity to current run)
SETTINGS_PATHS = [
    "./hearth.yml",
    str(Path.home() / ".config" / "hearth" / "hearth.yml"),
    "/etc/hearth/hearth.yml",
]

# Environment overrides: variable name -> settings field
ENV_OVERRIDES = {
    "HEARTH_VARIABLES_FILE": "variables_file",
    "HEARTH_TEMPLATES_DIR": "templates_dir",
    "HEARTH_UNIT_DIR": "unit_dir",
    "HEARTH_UNIT_EXTENSION": "unit_extension",
    "HEARTH_MANAGER_TIMEOUT": "manager_timeout",
    "HEARTH_SETTLE_DELAY": "settle_delay",
}


def find_settings(settings_path: Optional[str] = None) -> Optional[Path]:
    """Locate the active settings file, or None when there is none."""
    if settings_path:
        return Path(settings_path)

    if env_path := os.environ.get("HEARTH_CONFIG"):
        return Path(env_path)

    for path in SETTINGS_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def load_settings(
    settings_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> DeploySettings:
    """Build settings from file, then HEARTH_* environment, then explicit overrides.

    Args:
        settings_path: Explicit settings file (optional)
        overrides: Field values from the command line; None values are ignored

    Returns:
        Validated DeploySettings

    Raises:
        SettingsError: If the file is unreadable, not a mapping, or fails validation
    """
    data: Dict[str, Any] = {}

    path = find_settings(settings_path)
    if path is not None:
        if not path.exists():
            raise SettingsError(f"Settings file not found: {path}")
        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in {path}: {e}") from e
        if raw is not None and not isinstance(raw, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")
        data.update(raw or {})
        logger.debug(f"Loaded settings from {path}")

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data[field_name] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return DeploySettings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}") from e


def is_mock() -> bool:
    """Return True when the service manager should only log its actions."""
    return os.environ.get("HEARTH_MOCK") == "1"
