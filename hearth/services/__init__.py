"""External service managers driven by Hearth."""
from .systemd import SystemdUserManager

__all__ = ['SystemdUserManager']
