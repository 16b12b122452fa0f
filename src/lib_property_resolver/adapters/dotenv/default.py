"""`.env` adapter.

Purpose
-------
Implement the :class:`lib_property_resolver.application.ports.DotEnvLoader`
protocol: find the nearest ``.env`` file walking upwards from a start
directory and turn it into flat, dotted property keys.

Contents
--------
* :class:`DefaultDotEnvLoader` – entry point with optional extra search paths.
* Helper functions (`_iter_candidates`, `_parse_dotenv`, `_property_key`,
  `_strip_quotes`) that perform discovery and parsing.

System Role
-----------
Feeds `.env` key/value pairs into the chain as a map-backed property source.
``SERVICE__TIMEOUT=10`` becomes the property ``service.timeout``; values are
kept as strings and may contain ``${...}`` placeholders.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Iterable

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error


class DefaultDotEnvLoader:
    """Load a dotenv file into a flat dotted-key dictionary.

    Why
    ----
    `.env` files supply secrets and developer overrides. They need
    deterministic discovery and keys that line up with file-based properties.
    """

    def __init__(self, *, extras: Iterable[str] | None = None) -> None:
        """Initialise the loader with optional *extras* searched after the upward walk."""

        self._extras = [Path(p) for p in extras or []]
        self.last_loaded_path: str | None = None

    def load(self, start_dir: str | None = None) -> Mapping[str, object]:
        """Return the first parsed dotenv file discovered in the search order.

        Side Effects
        ------------
        Sets :attr:`last_loaded_path` and emits structured logging events.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> path = Path(tmp.name) / '.env'
        >>> _ = path.write_text('SERVICE__TOKEN=secret', encoding='utf-8')
        >>> loader = DefaultDotEnvLoader()
        >>> loader.load(tmp.name)["service.token"]
        'secret'
        >>> loader.last_loaded_path == str(path)
        True
        >>> tmp.cleanup()
        """

        candidates = list(_iter_candidates(start_dir)) + self._extras
        self.last_loaded_path = None
        for candidate in candidates:
            if candidate.is_file():
                self.last_loaded_path = str(candidate)
                data = _parse_dotenv(candidate)
                log_debug("dotenv_loaded", source="dotenv", key=None, path=self.last_loaded_path, keys=sorted(data))
                return data
        log_debug("dotenv_not_found", source="dotenv", key=None, path=None)
        return {}


def _iter_candidates(start_dir: str | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root."""

    base = Path(start_dir) if start_dir else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def _parse_dotenv(path: Path) -> dict[str, object]:
    """Parse ``path`` into flat dotted keys, raising ``InvalidFormat`` on malformed lines."""

    result: dict[str, object] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", source="dotenv", key=None, path=str(path), line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            key, value = line.split("=", 1)
            key = key.strip()
            if not key:
                log_error("dotenv_invalid_line", source="dotenv", key=None, path=str(path), line=line_number)
                raise InvalidFormat(f"Missing key on line {line_number} in {path}")
            result[_property_key(key)] = _strip_quotes(value.strip())
    return result


def _property_key(key: str) -> str:
    """Translate a dotenv variable name into a property key.

    Examples
    --------
    >>> _property_key('SERVICE__TIMEOUT')
    'service.timeout'
    >>> _property_key('LOG_LEVEL')
    'log_level'
    """

    return ".".join(part.lower() for part in key.split("__"))


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
