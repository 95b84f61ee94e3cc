"""Error taxonomy for the deployment engine.

Configuration errors (ConfigMissing, ConfigMalformed, SettingsError) abort a
run before any side effect. Everything else is scoped to a single service
and ends up in that service's record instead of stopping the batch.
"""
from typing import Optional, Sequence


class HearthError(Exception):
    """Base class for all Hearth errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class SettingsError(HearthError):
    """Raised when the hearth.yml settings file is invalid."""


class ConfigMissing(HearthError):
    """Raised when the variables file does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Variables file not found: {path}\n"
            "Copy variables.env.example to variables.env and fill it in."
        )


class ConfigMalformed(HearthError):
    """Raised when the variables file is not a flat list of KEY=value lines."""

    def __init__(self, path, line_number: int, reason: str):
        self.path = path
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{path}:{line_number}: {reason}")


class UnboundVariable(HearthError):
    """Raised when a template references a variable with no binding."""

    def __init__(self, names: Sequence[str], template: Optional[str] = None):
        self.names = tuple(names)
        self.name = self.names[0]
        self.template = template
        super().__init__(f"{', '.join(self.names)} not defined in variables file")


class MalformedPlaceholder(UnboundVariable):
    """Raised when a template contains a ${...} form that is not ${UPPER_NAME}."""

    def __init__(self, tokens: Sequence[str], template: Optional[str] = None):
        self.names = tuple(tokens)
        self.name = self.names[0]
        self.template = template
        HearthError.__init__(self, f"unsupported placeholder(s) {', '.join(self.names)}")


class WriteError(HearthError):
    """Raised when a rendered unit cannot be written to the unit directory."""


class EnableError(HearthError):
    """Raised when the service manager rejects enable-and-start."""


class ManagerTimeout(EnableError):
    """Raised when a service manager call exceeds its timeout."""


class TemplateError(HearthError):
    """Raised when a template file cannot be read during discovery."""
