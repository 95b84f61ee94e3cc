"""Settings file model."""
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeploySettings(BaseModel):
    """Where templates, variables and rendered units live, and manager timing."""

    model_config = ConfigDict(extra='forbid', validate_default=True)

    variables_file: Path = Path("variables.env")
    templates_dir: Path = Path("configs")
    unit_dir: Path = Field(
        default=Path("~/.config/containers/systemd"),
        description="Directory scanned by the Quadlet generator",
    )
    unit_extension: str = "container"
    manager_timeout: float = Field(30.0, gt=0, description="Seconds per systemctl call")
    settle_delay: float = Field(3.0, ge=0, description="Seconds to wait before querying status")
    host_variable: str = "SERVER_IP"
    data_root_variable: str = "SERVER_PODMAN_CONFIG_DIR"

    @field_validator('unit_extension')
    @classmethod
    def strip_leading_dot(cls, v: str) -> str:
        """Accept both 'container' and '.container'."""
        v = v.lstrip('.')
        if not v:
            raise ValueError("unit_extension cannot be empty")
        return v

    @field_validator('variables_file', 'templates_dir', 'unit_dir')
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return Path(v).expanduser()
