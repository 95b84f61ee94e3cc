"""Data models for Hearth."""
from hearth.models.settings import DeploySettings

__all__ = [
    'DeploySettings',
]
