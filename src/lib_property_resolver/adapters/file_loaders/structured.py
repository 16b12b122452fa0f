"""Structured configuration file adapters.

Purpose
-------
Convert on-disk TOML/JSON/YAML/``.properties`` artifacts into map-backed
property sources. Parsing is delegated to ``tomllib``/``json``/``yaml.safe_load``;
``.properties`` lines are split here. This module owns error translation,
flattening into dotted keys and profile-specific file discovery.

Contents
--------
* :class:`BaseFileLoader` – shared read and mapping-validation helpers.
* :class:`TOMLFileLoader` / :class:`JSONFileLoader` / :class:`YAMLFileLoader` /
  :class:`PropertiesFileLoader`.
* :data:`FILE_LOADERS` – suffix → loader registry.
* :func:`load_property_source` – parse one file into a :class:`MapPropertySource`.
* :func:`discover_profile_files` – map ``<base>[-<profile>].<ext>`` files to
  profile names.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...domain.errors import InvalidFormat, ResourceNotFound
from ...domain.profiles import RESERVED_DEFAULT_PROFILE_NAME
from ...domain.sources import MapPropertySource
from ...observability import log_debug, log_error


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    format_name = "file"

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`ResourceNotFound` when it is not a file."""

        file_path = Path(path)
        if not file_path.is_file():
            raise ResourceNotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", source="file", key=None, path=path, size=len(payload))
        return payload

    def _fail(self, path: str, exc: Exception) -> InvalidFormat:
        log_error("config_file_invalid", source="file", key=None, path=path, format=self.format_name, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} in {path}: {exc}")

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_property_resolver.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents using the standard library parser."""

    format_name = "toml"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = tomllib.loads(self._read(path).decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._fail(path, exc) from exc
        return self._ensure_mapping(data, path=path)


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    format_name = "json"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._fail(path, exc) from exc
        return self._ensure_mapping(data, path=path)


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents with ``yaml.safe_load``; an empty document is an empty mapping."""

    format_name = "yaml"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            raise self._fail(path, exc) from exc
        return self._ensure_mapping({} if data is None else data, path=path)


class PropertiesFileLoader(BaseFileLoader):
    """Load ``.properties`` files: ``key=value`` or ``key:value`` lines.

    Lines starting with ``#`` or ``!`` are comments. The first ``=`` or ``:``
    separates key from value, both trimmed. ``\\n``, ``\\r``, ``\\t`` and ``\\\\``
    are unescaped in values; other backslashes are kept. Keys are already
    dotted, so no nesting happens.

    Examples
    --------
    >>> _parse_properties("# comment\\nhost = localhost\\n! also a comment\\nport:8080\\ngreeting=Hello\\\\nWorld")
    {'host': 'localhost', 'port': '8080', 'greeting': 'Hello\\nWorld'}
    """

    format_name = "properties"

    def load(self, path: str) -> Mapping[str, object]:
        try:
            text = self._read(path).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self._fail(path, exc) from exc
        try:
            return _parse_properties(text)
        except ValueError as exc:
            raise self._fail(path, exc) from exc


FILE_LOADERS: dict[str, BaseFileLoader] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
    ".properties": PropertiesFileLoader(),
}
"""Supported structured formats keyed by lower-case suffix."""


def load_property_source(path: str | Path, *, name: str | None = None) -> MapPropertySource:
    """Parse the file at *path* and return it as a flattened :class:`MapPropertySource`.

    Parameters
    ----------
    path:
        TOML, JSON, YAML or ``.properties`` file.
    name:
        Chain name; defaults to ``file [<path>]``.

    Raises
    ------
    InvalidFormat
        For unsupported suffixes and parse errors.
    ResourceNotFound
        When the file does not exist.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "application.toml"
    >>> _ = target.write_text('[server]\\nport = 8080\\n', encoding="utf-8")
    >>> load_property_source(target, name="app").get_property("server.port")
    8080
    >>> tmp.cleanup()
    """

    text_path = str(path)
    loader = FILE_LOADERS.get(Path(text_path).suffix.lower())
    if loader is None:
        raise InvalidFormat(f"Unsupported configuration file type: {text_path}")
    data = loader.load(text_path)
    source = MapPropertySource.from_nested(name or f"file [{text_path}]", data)
    log_debug("config_file_loaded", source=source.name, key=None, path=text_path, format=loader.format_name)
    return source


def discover_profile_files(directory: str | Path, base_name: str) -> dict[str, list[Path]]:
    """Group ``<base_name>.<ext>`` and ``<base_name>-<profile>.<ext>`` files by profile.

    The plain file belongs to the reserved ``default`` profile. Files with an
    unsupported suffix are skipped; within a profile, paths are sorted by name.

    Raises
    ------
    ResourceNotFound
        When *directory* does not exist.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> for filename in ("application.yaml", "application-dev.toml", "other.json"):
    ...     _ = (Path(tmp.name) / filename).write_text("", encoding="utf-8")
    >>> found = discover_profile_files(tmp.name, "application")
    >>> {profile: [path.name for path in paths] for profile, paths in found.items()}
    {'dev': ['application-dev.toml'], 'default': ['application.yaml']}
    >>> tmp.cleanup()
    """

    root = Path(directory)
    if not root.is_dir():
        raise ResourceNotFound(f"Configuration directory not found: {root}")
    grouped: dict[str, list[Path]] = {}
    for candidate in sorted(root.iterdir(), key=lambda item: item.name):
        if not candidate.is_file() or candidate.suffix.lower() not in FILE_LOADERS:
            continue
        profile = _profile_from_stem(candidate.stem, base_name)
        if profile is not None:
            grouped.setdefault(profile, []).append(candidate)
    return grouped


def _profile_from_stem(stem: str, base_name: str) -> str | None:
    """Return the profile encoded in *stem* or ``None`` when it is unrelated.

    Examples
    --------
    >>> _profile_from_stem("application", "application"), _profile_from_stem("application-prod", "application")
    ('default', 'prod')
    >>> _profile_from_stem("other", "application") is None
    True
    """

    if stem == base_name:
        return RESERVED_DEFAULT_PROFILE_NAME
    prefix = f"{base_name}-"
    if stem.startswith(prefix) and len(stem) > len(prefix):
        return stem[len(prefix) :]
    return None


_PROPERTIES_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\"}
_PROPERTIES_ESCAPE_PATTERN = re.compile(r"\\(.)")


def _parse_properties(text: str) -> dict[str, object]:
    """Parse ``.properties`` text into a flat mapping, raising ``ValueError`` on malformed lines."""

    result: dict[str, object] = {}
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue
        separator = min((index for index in (line.find("="), line.find(":")) if index != -1), default=-1)
        if separator == -1:
            raise ValueError(f"line {line_number} has no '=' or ':' separator")
        key = line[:separator].strip()
        if not key:
            raise ValueError(f"line {line_number} has an empty key")
        result[key] = _unescape_properties_value(line[separator + 1 :].strip())
    return result


def _unescape_properties_value(value: str) -> str:
    """Replace the supported escape sequences in a single pass.

    Examples
    --------
    >>> _unescape_properties_value(r"a\\tb\\\\nc\\q")
    'a\\tb\\\\nc\\\\q'
    """

    return _PROPERTIES_ESCAPE_PATTERN.sub(lambda match: _PROPERTIES_ESCAPES.get(match.group(1), match.group(0)), value)
