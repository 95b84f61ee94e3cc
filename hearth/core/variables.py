"""Variable store: host-specific bindings loaded from a KEY=value file."""
import re
import shlex
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Union

from hearth.core.errors import ConfigMalformed, ConfigMissing
from hearth.core.logger import get_logger

logger = get_logger(__name__)

NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
ASSIGNMENT = re.compile(r'^(?:export\s+)?([^=\s]+)=(.*)$')


class Bindings(Mapping[str, str]):
    """Immutable name -> value mapping shared by every template in a run."""

    def __init__(self, values: Optional[Mapping[str, str]] = None, source: Optional[Path] = None):
        self._values: Dict[str, str] = dict(values or {})
        self.source = source

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Bindings({len(self._values)} variables from {self.source or '<memory>'})"


def _parse_value(raw: str, path: Path, line_number: int) -> str:
    """Turn the right-hand side of an assignment into its shell word value."""
    try:
        tokens = shlex.split(raw, comments=False, posix=True)
    except ValueError as e:
        raise ConfigMalformed(path, line_number, f"cannot parse value: {e}") from e

    # Trailing "# comment" after the value
    for index, token in enumerate(tokens[1:], start=1):
        if token.startswith('#'):
            tokens = tokens[:index]
            break

    if len(tokens) > 1:
        raise ConfigMalformed(
            path, line_number,
            f"value '{raw.strip()}' contains unquoted whitespace; quote it"
        )
    return tokens[0] if tokens else ""


def parse_bindings(text: str, path: Union[str, Path] = "<string>") -> Dict[str, str]:
    """Parse KEY=value lines into a dict.

    Blank lines and lines starting with '#' are skipped, an optional leading
    ``export`` is accepted, and values follow shell word quoting. Later
    assignments of the same name win, as they would with ``source``.

    Raises:
        ConfigMalformed: On the first line that is not a valid assignment
    """
    path = Path(path)
    values: Dict[str, str] = {}

    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        match = ASSIGNMENT.match(stripped)
        if not match:
            raise ConfigMalformed(path, line_number, f"expected KEY=value, got '{stripped}'")

        name, raw_value = match.groups()
        if not NAME_PATTERN.match(name):
            raise ConfigMalformed(path, line_number, f"invalid variable name '{name}'")

        if name in values:
            logger.debug(f"{path}:{line_number}: {name} reassigned")
        values[name] = _parse_value(raw_value, path, line_number)

    return values


def load(source: Union[str, Path]) -> Bindings:
    """Load bindings from a variables file.

    All-or-nothing: either every line parses and a Bindings is returned,
    or an error is raised and nothing is exposed.

    Raises:
        ConfigMissing: If the file does not exist
        ConfigMalformed: If any line cannot be parsed
    """
    path = Path(source).expanduser()
    if not path.is_file():
        raise ConfigMissing(path)

    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigMalformed(path, 0, f"cannot read file: {e}") from e

    values = parse_bindings(text, path)
    logger.debug(f"Loaded {len(values)} variables from {path}")
    return Bindings(values, source=path)
