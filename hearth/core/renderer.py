"""Template rendering: single-pass ${NAME} substitution."""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from hearth.core.errors import MalformedPlaceholder, UnboundVariable

PLACEHOLDER = re.compile(r'\$\{([A-Z_][A-Z0-9_]*)\}')
# Anything else shaped like ${...} on one line
ANY_BRACED = re.compile(r'\$\{[^}\n]*\}')


@dataclass(frozen=True)
class ServiceTemplate:
    """An unrendered unit definition read from the templates directory."""

    name: str
    extension: str
    text: str
    source: Optional[Path] = None

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.extension}"


@dataclass(frozen=True)
class RenderedUnit:
    """A template with every placeholder replaced by its bound value."""

    name: str
    filename: str
    text: str


def placeholders(text: str) -> List[str]:
    """Return placeholder names in order of first appearance, without duplicates."""
    seen: List[str] = []
    for match in PLACEHOLDER.finditer(text):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def malformed_placeholders(text: str) -> List[str]:
    """Return ${...} forms that are not valid placeholders, in order, without duplicates."""
    seen: List[str] = []
    for match in ANY_BRACED.finditer(text):
        token = match.group(0)
        if not PLACEHOLDER.fullmatch(token) and token not in seen:
            seen.append(token)
    return seen


def render(template: ServiceTemplate, bindings: Mapping[str, str]) -> RenderedUnit:
    """Substitute every ${NAME} in the template with its binding.

    Values are inserted verbatim and are not scanned again, so a value that
    itself looks like a placeholder stays literal. A placeholder without a
    binding, or a ${...} that is not ${UPPER_NAME}, is never left in place
    or blanked.

    Raises:
        UnboundVariable: Naming the missing keys, first missing key as ``name``
        MalformedPlaceholder: For ${lower}, ${FOO-default} and similar forms
    """
    missing = [name for name in placeholders(template.text) if name not in bindings]
    if missing:
        raise UnboundVariable(missing, template=template.name)

    malformed = malformed_placeholders(template.text)
    if malformed:
        raise MalformedPlaceholder(malformed, template=template.name)

    text = PLACEHOLDER.sub(lambda m: bindings[m.group(1)], template.text)
    return RenderedUnit(name=template.name, filename=template.filename, text=text)
