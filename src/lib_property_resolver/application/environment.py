"""Environment facade combining property resolution with profile state.

Purpose
-------
Offer the object bootstrap code passes around: a property-source chain, the
resolver configured on top of it, and the active/default profile sets.

Contents
--------
* :data:`ACTIVE_PROFILES_PROPERTY_NAME` / :data:`DEFAULT_PROFILES_PROPERTY_NAME`
  – properties that seed the profile sets when nothing was set explicitly.
* :class:`StandardEnvironment` – the facade itself.

System Role
-----------
Constructed once by :func:`lib_property_resolver.core.create_environment` (or
directly by callers) and handed to consumers; there is no global instance.
Mutation (sources, profiles) is expected during bootstrap only and is not
synchronised internally.
"""

from __future__ import annotations

from typing import Any, Final, Iterable

from ..domain.profiles import RESERVED_DEFAULT_PROFILE_NAME, Profiles, validate_profile
from ..domain.property_sources import PropertySources
from ..observability import log_debug, make_event
from .conversion import split_list
from .ports import ConversionService
from .resolver import PropertySourcesPropertyResolver

ACTIVE_PROFILES_PROPERTY_NAME: Final[str] = "profiles.active"
DEFAULT_PROFILES_PROPERTY_NAME: Final[str] = "profiles.default"

_UNSET: Final[Any] = object()


class StandardEnvironment:
    """Property resolver plus profile bookkeeping.

    Why
    ----
    Consumers want one handle that answers both "what is K" and "is profile P
    in effect" so configuration can be layered per profile.

    What
    ----
    * Property calls are forwarded to a :class:`PropertySourcesPropertyResolver`
      over :attr:`property_sources`.
    * A profile is active when it is in the active set, or when the active set
      is empty and it is one of the default profiles. The default fallback is
      evaluated on demand and never copied into the active set.
    * While no profile was set explicitly, :data:`ACTIVE_PROFILES_PROPERTY_NAME`
      (comma separated) seeds the active set; likewise
      :data:`DEFAULT_PROFILES_PROPERTY_NAME` replaces the reserved default.

    Examples
    --------
    >>> env = StandardEnvironment()
    >>> env.accepts_profiles("default")
    True
    >>> env.set_active_profiles("dev")
    >>> env.accepts_profiles("dev", "!prod"), env.accepts_profiles("prod")
    (True, False)
    >>> env.active_profiles
    ('dev',)
    """

    def __init__(self, property_sources: PropertySources | None = None) -> None:
        self._property_sources = property_sources if property_sources is not None else PropertySources()
        self._resolver = PropertySourcesPropertyResolver(self._property_sources)
        self._active_profiles: dict[str, None] = {}
        self._default_profiles: dict[str, None] = {RESERVED_DEFAULT_PROFILE_NAME: None}

    @property
    def property_sources(self) -> PropertySources:
        return self._property_sources

    @property
    def resolver(self) -> PropertySourcesPropertyResolver:
        return self._resolver

    # -- profiles --------------------------------------------------------------------

    @property
    def active_profiles(self) -> tuple[str, ...]:
        return tuple(self._current_active_profiles())

    @property
    def default_profiles(self) -> tuple[str, ...]:
        return tuple(self._current_default_profiles())

    def set_active_profiles(self, *profiles: str) -> None:
        """Replace the active set with *profiles* (validated, order preserved)."""

        validated = [validate_profile(profile) for profile in profiles]
        log_debug("profiles_activated", **make_event(None, None, {"profiles": validated}))
        self._active_profiles = dict.fromkeys(validated)

    def add_active_profile(self, profile: str) -> None:
        """Add *profile* to the active set, keeping previously activated ones."""

        validate_profile(profile)
        self._current_active_profiles()
        log_debug("profiles_activated", **make_event(None, None, {"profiles": [profile]}))
        self._active_profiles[profile] = None

    def set_default_profiles(self, *profiles: str) -> None:
        """Replace the default set used while no profile is active."""

        self._default_profiles = dict.fromkeys(validate_profile(profile) for profile in profiles)

    def is_profile_active(self, profile: str) -> bool:
        validate_profile(profile)
        active = self._current_active_profiles()
        return profile in active or (not active and profile in self._current_default_profiles())

    def accepts_profiles(self, *expressions: str | Profiles) -> bool:
        """Return ``True`` when at least one expression matches the active profiles.

        Each expression is a profile name, ``!name``, or a compound expression
        using ``&``, ``|`` and parentheses. A pre-parsed :class:`Profiles`
        instance is accepted as the single argument.
        """

        if len(expressions) == 1 and isinstance(expressions[0], Profiles):
            profiles = expressions[0]
        else:
            profiles = Profiles.of(*expressions)  # type: ignore[arg-type]
        return profiles.matches(self.is_profile_active)

    def merge(self, parent: StandardEnvironment) -> None:
        """Append the parent's sources and profiles that this environment lacks."""

        for source in parent.property_sources:
            if not self._property_sources.contains(source.name):
                self._property_sources.add_last(source)
        parent_active = parent.active_profiles
        if parent_active:
            self._active_profiles.update(dict.fromkeys(parent_active))
        parent_defaults = parent.default_profiles
        if parent_defaults:
            self._default_profiles.pop(RESERVED_DEFAULT_PROFILE_NAME, None)
            self._default_profiles.update(dict.fromkeys(parent_defaults))

    def _current_active_profiles(self) -> dict[str, None]:
        if not self._active_profiles:
            configured = self._resolver.get_property(ACTIVE_PROFILES_PROPERTY_NAME)
            if configured and configured.strip():
                self.set_active_profiles(*split_list(configured))
        return self._active_profiles

    def _current_default_profiles(self) -> dict[str, None]:
        if list(self._default_profiles) == [RESERVED_DEFAULT_PROFILE_NAME]:
            configured = self._resolver.get_property(DEFAULT_PROFILES_PROPERTY_NAME)
            if configured and configured.strip():
                self.set_default_profiles(*split_list(configured))
        return self._default_profiles

    # -- resolver configuration ------------------------------------------------------

    @property
    def conversion_service(self) -> ConversionService:
        return self._resolver.conversion_service

    @conversion_service.setter
    def conversion_service(self, service: ConversionService) -> None:
        self._resolver.conversion_service = service

    def configure_placeholders(
        self,
        *,
        prefix: str | None = None,
        suffix: str | None = None,
        value_separator: Any = _UNSET,
        escape_character: Any = _UNSET,
        ignore_unresolvable_nested_placeholders: bool | None = None,
    ) -> None:
        """Adjust the placeholder syntax of the underlying resolver.

        ``value_separator`` and ``escape_character`` accept ``None`` to disable
        the feature; omitted arguments keep their current value.
        """

        if prefix is not None:
            self._resolver.placeholder_prefix = prefix
        if suffix is not None:
            self._resolver.placeholder_suffix = suffix
        if value_separator is not _UNSET:
            self._resolver.value_separator = value_separator
        if escape_character is not _UNSET:
            self._resolver.escape_character = escape_character
        if ignore_unresolvable_nested_placeholders is not None:
            self._resolver.ignore_unresolvable_nested_placeholders = ignore_unresolvable_nested_placeholders

    def set_required_properties(self, keys: Iterable[str]) -> None:
        self._resolver.set_required_properties(keys)

    def validate_required_properties(self) -> None:
        self._resolver.validate_required_properties()

    # -- property resolution ---------------------------------------------------------

    def contains_property(self, key: str) -> bool:
        return self._resolver.contains_property(key)

    def get_property(self, key: str, target_type: Any = str, default: Any = None) -> Any:
        return self._resolver.get_property(key, target_type, default)

    def get_raw_property(self, key: str) -> Any | None:
        return self._resolver.get_raw_property(key)

    def get_required_property(self, key: str, target_type: Any = str) -> Any:
        return self._resolver.get_required_property(key, target_type)

    def resolve_placeholders(self, text: str) -> str:
        return self._resolver.resolve_placeholders(text)

    def resolve_required_placeholders(self, text: str) -> str:
        return self._resolver.resolve_required_placeholders(text)

    def __repr__(self) -> str:
        return (
            f"StandardEnvironment(active_profiles={list(self._active_profiles)!r}, "
            f"default_profiles={list(self._default_profiles)!r}, "
            f"property_sources={list(self._property_sources.names())!r})"
        )
