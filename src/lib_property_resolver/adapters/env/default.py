"""Environment variable adapter.

Purpose
-------
Expose process environment variables as a property source so that keys such
as ``db.host`` can be overridden with ``DB_HOST`` (or ``DEMO_DB_HOST`` when a
prefix is configured) without renaming them in code.

Key behaviours
--------------
* Relaxed lookup: ``app.name`` also tries ``app_name``, ``APP_NAME``,
  ``APP__NAME`` and variants with ``-`` turned into ``_``.
* Optional prefix (``default_env_prefix``) so only relevant variables are
  visible.
* Values stay strings; type coercion happens in the resolver.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from ...domain.sources import MapPropertySource
from ...observability import is_debug_enabled, log_debug, make_event

SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME: Final[str] = "systemEnvironment"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-property-resolver')
    'LIB_PROPERTY_RESOLVER'
    """

    return slug.replace("-", "_").upper()


class SystemEnvironmentPropertySource(MapPropertySource):
    """Property source over environment variables with relaxed key matching.

    Parameters
    ----------
    name:
        Chain name, :data:`SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME` by default.
    environ:
        Mapping to read from. Defaults to :data:`os.environ` (read live).
    prefix:
        Optional prefix; when given only ``<PREFIX>_<NAME>`` variables match.

    Examples
    --------
    >>> source = SystemEnvironmentPropertySource(environ={"DEMO_DB_HOST": "db.example.com", "OTHER": "x"}, prefix="DEMO")
    >>> source.get_property("db.host")
    'db.example.com'
    >>> source.get_property("other") is None
    True
    >>> source.property_names()
    ('DB_HOST',)
    >>> all(source.contains_property(name) for name in source.property_names())
    True
    """

    def __init__(
        self,
        name: str = SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str | None = None,
    ) -> None:
        super().__init__(name, environ if environ is not None else os.environ)
        self._prefix = _normalise_prefix(prefix)

    @property
    def prefix(self) -> str:
        return self._prefix

    def get_property(self, key: str) -> str | None:
        actual = self._resolve_name(key)
        if actual is None:
            return None
        if is_debug_enabled() and actual != key:
            log_debug("env_key_mapped", **make_event(self.name, key, {"variable": actual}))
        return self._source[actual]

    def contains_property(self, key: str) -> bool:
        return self._resolve_name(key) is not None

    def property_names(self) -> tuple[str, ...]:
        """Return variable names with the prefix stripped, as accepted by :meth:`get_property`."""

        return tuple(
            variable[len(self._prefix) :]
            for variable, value in self._source.items()
            if value is not None and variable.startswith(self._prefix) and len(variable) > len(self._prefix)
        )

    def _resolve_name(self, key: str) -> str | None:
        for candidate in _candidate_names(key):
            variable = self._prefix + candidate
            if self._source.get(variable) is not None:
                return variable
        return None


def _candidate_names(key: str) -> list[str]:
    """Return the relaxed spellings tried for *key*, most literal first.

    Examples
    --------
    >>> _candidate_names("app.log-level")
    ['app.log-level', 'app_log-level', 'app.log_level', 'app_log_level', 'app__log_level', 'APP.LOG-LEVEL', 'APP_LOG-LEVEL', 'APP.LOG_LEVEL', 'APP_LOG_LEVEL', 'APP__LOG_LEVEL']
    """

    base = [
        key,
        key.replace(".", "_"),
        key.replace("-", "_"),
        key.replace(".", "_").replace("-", "_"),
        key.replace("-", "_").replace(".", "__"),
    ]
    candidates = list(dict.fromkeys(base))
    candidates.extend(name for name in dict.fromkeys(item.upper() for item in base) if name not in candidates)
    return candidates


def _normalise_prefix(prefix: str | None) -> str:
    """Append ``_`` to a non-empty prefix, mirroring variable naming."""

    if not prefix:
        return ""
    return prefix if prefix.endswith("_") else f"{prefix}_"
