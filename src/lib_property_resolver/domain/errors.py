"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by property sources, the resolver, the
profile evaluator, adapters and consuming applications. The hierarchy lives in
the domain layer so outer layers may depend on it without creating cycles.

Contents
--------
* :class:`PropertyError` – umbrella base class for every library failure.
* :class:`PropertyNotFound` – a required key is absent after full resolution.
* :class:`PlaceholderError` and its subclasses
  :class:`UnresolvablePlaceholder` / :class:`CircularPlaceholderReference`.
* :class:`TypeConversionFailed` – coercion to a requested type is impossible.
* :class:`MissingRequiredProperties` – aggregated validation report.
* :class:`PropertySourceError` and its subclasses :class:`DuplicateSource` /
  :class:`SourceNotFound` – chain mutation failures.
* :class:`ProfileError` and its subclasses :class:`InvalidProfileName` /
  :class:`InvalidProfileExpression`.
* :class:`InvalidCommandLineArgument` – malformed ``--`` tokens.
* :class:`InvalidFormat` – parsing problems while reading files or dotenv.
* :class:`ResourceNotFound` – a configuration file or directory is missing.

System Role
-----------
Lookups never raise for absence; everything else surfaces through one of these
types so callers can catch :class:`PropertyError` to handle all library
failures uniformly.
"""

from __future__ import annotations

from typing import Any, Iterable


class PropertyError(Exception):
    """Base type for all exceptions emitted by ``lib_property_resolver``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class PropertyNotFound(PropertyError, LookupError):
    """Raised by the *required* lookup variants when a key resolves to nothing."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required key '{key}' not found")
        self.key = key


class PlaceholderError(PropertyError):
    """Common parent for placeholder substitution failures."""


class UnresolvablePlaceholder(PlaceholderError):
    """A ``${key}`` placeholder had no match, no default and was not ignored.

    Attributes
    ----------
    key:
        Placeholder key that could not be resolved.
    text:
        The text that was being expanded when the failure happened.
    """

    def __init__(self, key: str, text: str | None = None) -> None:
        message = f"Could not resolve placeholder '{key}'"
        if text is not None:
            message += f" in value \"{text}\""
        super().__init__(message)
        self.key = key
        self.text = text


class CircularPlaceholderReference(PlaceholderError):
    """A placeholder key recursively depends on itself.

    Attributes
    ----------
    key:
        The key that re-entered expansion.
    chain:
        Keys in flight (outermost first) when the cycle was detected.
    """

    def __init__(self, key: str, chain: Iterable[str] = ()) -> None:
        self.key = key
        self.chain = tuple(chain)
        path = " -> ".join([*self.chain, key])
        super().__init__(f"Circular placeholder reference '{key}' in property definitions: {path}")


class TypeConversionFailed(PropertyError, ValueError):
    """Coercion of a resolved value into the requested type failed."""

    def __init__(self, value: Any, target_type: type, reason: str | None = None) -> None:
        type_name = getattr(target_type, "__name__", repr(target_type))
        message = f"Cannot convert value {value!r} of type {type(value).__name__} to {type_name}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.value = value
        self.target_type = target_type


class MissingRequiredProperties(PropertyError):
    """Aggregated report of every required key that did not resolve.

    Why
    ----
    Operators should see all missing keys in one run instead of fixing them one
    failure at a time.

    Examples
    --------
    >>> error = MissingRequiredProperties(["b", "c"])
    >>> error.missing
    ('b', 'c')
    >>> str(error)
    "The following properties were declared as required but could not be resolved: ['b', 'c']"
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(dict.fromkeys(missing))
        super().__init__(
            "The following properties were declared as required but could not be resolved: "
            f"{list(self.missing)}"
        )


class PropertySourceError(PropertyError):
    """Chain or composite-source misuse."""


class DuplicateSource(PropertySourceError):
    """A property source with the same name is already registered."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"PropertySource named '{name}' already exists")
        self.name = name


class SourceNotFound(PropertySourceError, LookupError):
    """A chain operation referenced a source name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"PropertySource named '{name}' does not exist")
        self.name = name


class ProfileError(PropertyError):
    """Common parent for profile validation and parsing failures."""


class InvalidProfileName(ProfileError, ValueError):
    """Profile names must contain text and must not begin with ``!``."""

    def __init__(self, profile: str, reason: str) -> None:
        super().__init__(f"Invalid profile [{profile}]: {reason}")
        self.profile = profile


class InvalidProfileExpression(ProfileError, ValueError):
    """A profile expression could not be parsed."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Malformed profile expression [{expression}]: {reason}")
        self.expression = expression


class InvalidCommandLineArgument(PropertyError, ValueError):
    """Raised for ``--`` tokens without an option name."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"Invalid argument syntax: {argument}")
        self.argument = argument


class InvalidFormat(PropertyError):
    """Raised when an input artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and dotenv
    parsing helpers.
    """


class ResourceNotFound(PropertyError, LookupError):
    """Represents a missing configuration artifact (file or directory).

    Why
    ----
    Let the composition root tell "nothing to load here" apart from malformed
    content.
    """
