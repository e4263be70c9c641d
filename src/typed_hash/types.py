"""Core value types for the typed_hash library."""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from enum import Enum
from types import UnionType
from typing import Any, Callable, Union, get_args, get_origin

# Keys are plain ASCII identifiers: letters, digits and underscores,
# never starting with a digit.
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z", re.ASCII)

# Implicit numeric widening accepted in addition to subclassing. Looked up
# along the value type's MRO, so bool widens like int.
NUMERIC_PROMOTIONS: dict[type, tuple[type, ...]] = {
    int: (float, complex),
    float: (complex,),
}


class MatchPolicy(Enum):
    """Tie-break rule used to pick among entries sharing a key."""

    FIRST = "first"
    LAST = "last"


class ConversionError(ValueError):
    """Raised when a value is present but cannot be converted to a type."""

    def __init__(self, value: Any, target: Any, reason: str | None = None) -> None:
        self.value = value
        self.target = target
        message = f"Cannot convert {value!r} of type '{type(value).__name__}' to '{type_name(target)}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def type_name(target: Any) -> str:
    """Return a readable name for a type or typing construct."""
    if isinstance(target, type) and get_origin(target) is None:
        return target.__name__
    return str(target).replace("typing.", "")


def is_identifier(name: Any) -> bool:
    """Check whether name is a well-formed key."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.match(name) is not None


def validate_identifier(name: Any) -> str:
    """Return name unchanged, raising if it is not a well-formed key."""
    if not isinstance(name, str):
        raise TypeError(f"Hash key must be a string, got '{type(name).__name__}'")
    if IDENTIFIER_PATTERN.match(name) is None:
        raise ValueError(f"'{name}' is not a valid Hash key")
    return name


class Boxed:
    """Type-erased wrapper around one concrete value.

    Key-only lookups return a Boxed so that values of any type can flow
    through a single result type. An empty Boxed is the not-found sentinel.
    """

    __slots__ = ("_value", "_has_value")

    EMPTY: Boxed

    def __init__(self, *value: Any) -> None:
        if len(value) > 1:
            raise TypeError(f"Boxed() takes at most one value ({len(value)} given)")
        if value and isinstance(value[0], Boxed):
            inner = value[0]
            self._has_value = inner._has_value
            self._value = inner._value
        else:
            self._has_value = bool(value)
            self._value = value[0] if value else None

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def type_tag(self) -> type | None:
        """Return the concrete type of the held value, or None when empty."""
        if not self._has_value:
            return None
        return type(self._value)

    def try_get(self, target: Any) -> Any:
        """Return the held value if it is assignable to target, else None."""
        if self._has_value and is_assignable(target, type(self._value)):
            return self._value
        return None

    def get(self, target: Any = None) -> Any:
        """Return the held value, converted to target when one is given.

        Raises:
            ValueError: If the box is empty.
            ConversionError: If the value cannot be converted to target.
        """
        if not self._has_value:
            raise ValueError("Boxed value is empty")
        if target is None:
            return self._value
        return convert(self._value, target)

    def __bool__(self) -> bool:
        return self._has_value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Boxed):
            if not (self._has_value and other._has_value):
                return self._has_value == other._has_value
            return bool(self._value == other._value)
        if not self._has_value:
            return False
        return bool(self._value == other)

    def __hash__(self) -> int:
        if not self._has_value:
            return hash(Boxed)
        return hash(self._value)

    def __repr__(self) -> str:
        if not self._has_value:
            return "Boxed()"
        return f"Boxed({self._value!r})"


Boxed.EMPTY = Boxed()


def _union_members(target: Any) -> tuple[Any, ...] | None:
    origin = get_origin(target)
    if origin is Union or origin is UnionType:
        return get_args(target)
    return None


def is_assignable(target: Any, value_type: type) -> bool:
    """Check whether a value of value_type may be stored where target is expected.

    Boxed and Any accept everything. Unions accept a value assignable to
    any member. Parameterised generics are checked against their origin.
    """
    if target is Boxed or target is Any or target is object:
        return True

    members = _union_members(target)
    if members is not None:
        return any(is_assignable(member, value_type) for member in members)

    origin = get_origin(target)
    if origin is not None:
        target = origin
    if not isinstance(target, type):
        return False

    try:
        if issubclass(value_type, target):
            return True
    except TypeError:
        # TypedDict and non-runtime Protocol reject class checks.
        return False
    return any(target in NUMERIC_PROMOTIONS.get(base, ()) for base in value_type.__mro__)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        raise ConversionError(value, bool, "expected 'true' or 'false'")
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    raise ConversionError(value, bool)


def _to_int(value: Any) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ConversionError(value, int, "value is not integral")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConversionError(value, int) from exc


def convert(value: Any, target: Any) -> Any:
    """Convert value to target, raising ConversionError when impossible."""
    if target is Boxed:
        return Boxed(value)
    if isinstance(value, Boxed):
        value = value.get()
    if target is Any or target is object:
        return value

    members = _union_members(target)
    if members is not None:
        for member in members:
            if is_assignable(member, type(value)):
                return value
        for member in members:
            try:
                return convert(value, member)
            except ConversionError:
                continue
        raise ConversionError(value, target)

    origin = get_origin(target)
    check = origin if origin is not None else target
    if not isinstance(check, type):
        raise ConversionError(value, target, "not a concrete type")

    try:
        if isinstance(value, check):
            return value
    except TypeError as exc:
        raise ConversionError(value, target, "type does not support instance checks") from exc
    if check is bool:
        return _to_bool(value)
    if check is int:
        return _to_int(value)
    try:
        return check(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConversionError(value, target) from exc


def default_value(target: Any) -> Any:
    """Return the zero value for target.

    Boxed yields the empty box; optional and untyped targets yield None;
    other classes are instantiated without arguments when they allow it.
    """
    if target is Boxed:
        return Boxed.EMPTY
    if target is None or target is Any or _union_members(target) is not None:
        return None

    origin = get_origin(target)
    cls = origin if origin is not None else target
    if not isinstance(cls, type):
        return None
    try:
        return cls()
    except TypeError:
        return None


def _check_producer(key: str, producer: Any) -> None:
    if not callable(producer):
        raise TypeError(
            f"Producer for key '{key}' must be a zero-argument callable, "
            f"got '{type(producer).__name__}'"
        )
    try:
        signature = inspect.signature(producer)
    except (TypeError, ValueError):
        # Some builtins expose no signature; calling them decides.
        return
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            raise TypeError(
                f"Producer for key '{key}' must take no arguments "
                f"(requires '{param.name}')"
            )


@dataclass(frozen=True)
class Entry:
    """One key => value binding inside a Hash.

    The producer is evaluated once, when the entry is defined. Its result
    and the result's concrete type are fixed from then on, so an invalid
    entry can never be observed by a query.
    """

    key: str
    producer: Callable[[], Any] = field(repr=False, compare=False)
    value: Any = field(init=False)
    value_type: type = field(init=False, repr=False)

    def __post_init__(self) -> None:
        validate_identifier(self.key)
        _check_producer(self.key, self.producer)
        value = self.producer()
        if value is None:
            raise TypeError(f"Producer for key '{self.key}' returned no value")
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "value_type", type(value))

    @classmethod
    def of(cls, key: str, value: Any) -> Entry:
        """Create an entry from a plain value."""
        return cls(key, lambda: value)

    def matches(self, name: str, target: Any = Boxed) -> bool:
        """Check whether this entry answers a lookup for name as target."""
        return self.key == name and is_assignable(target, self.value_type)


@dataclass
class Ref:
    """Typed destination for Hash.get().

    The declared type selects which entries may be written into it; value
    starts at the type's zero value.
    """

    type: Any = Boxed
    value: Any = None

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = default_value(self.type)
