"""The Hash container: an immutable, ordered, multi-valued typed mapping."""

from __future__ import annotations

import builtins
import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Iterator

from typed_hash.types import (
    Boxed,
    Entry,
    MatchPolicy,
    Ref,
    convert,
    default_value,
    type_name,
)

if TYPE_CHECKING:
    from typed_hash.record import RecordRegistry

logger = logging.getLogger(__name__)


def _coerce_entry(item: Any, position: int) -> Entry:
    if isinstance(item, Entry):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        key, producer = item
        return Entry(key, producer)
    raise TypeError(
        f"Type `{type(item).__name__}` in Hash[index => {position}] is not a valid key."
    )


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def format_value(value: Any) -> str:
    """Render a value in hash literal syntax."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    if isinstance(value, Hash):
        return "{" + value.to_literal() + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    return repr(value)


class Hash:
    """Ordered collection of key => value entries.

    Keys may repeat, with the same or with different value types. A Hash is
    fixed at construction: every query is read-only and combining two
    hashes produces a new one.

    ```
    h = Hash(("x", lambda: 5), ("x", lambda: "10"))

    h.value("x", int)   # 5
    h.value("x", str)   # "10"
    h["x"]              # Boxed(5)
    ```
    """

    __slots__ = ("_entries",)

    def __init__(self, *entries: Entry | tuple[str, Any]) -> None:
        built = tuple(_coerce_entry(item, position) for position, item in enumerate(entries, start=1))
        object.__setattr__(self, "_entries", built)

    @classmethod
    def from_entries(cls, entries: Any) -> Hash:
        """Build a Hash from an iterable of entries or (key, producer) pairs."""
        return cls(*entries)

    @classmethod
    def parse(cls, text: str) -> Hash:
        """Build a Hash from literal text such as ``x => 1, y => "a"``."""
        from typed_hash.parsing import parse_hash

        return parse_hash(text)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Hash is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Hash is immutable")

    def __copy__(self) -> Hash:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Hash:
        return self

    # -- Collection -------------------------------------------------------

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    @property
    def length(self) -> int:
        """Number of entries, duplicates included."""
        return len(self._entries)

    @property
    def empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # -- Query engine -----------------------------------------------------

    def keys(self) -> set[str]:
        """Return the distinct key names. Order is unspecified."""
        return {entry.key for entry in self._entries}

    def has_key(self, name: str) -> bool:
        return any(entry.key == name for entry in self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_key(name)

    def find(self, name: str, target: Any = Boxed) -> tuple[bool, Any]:
        """Look up the first entry for name whose value fits target.

        Returns:
            (True, value) on a match, where value is boxed when target is
            Boxed. (False, None) when no entry matches.
        """
        for entry in self._entries:
            if entry.matches(name, target):
                return True, convert(entry.value, target)
        return False, None

    def get(self, name: str, dest: Ref) -> bool:
        """Fetch the first entry for name that fits dest's type into dest.

        dest is left untouched when nothing matches.
        """
        found, value = self.find(name, dest.type)
        if found:
            dest.value = value
        return found

    def index(self, name: str) -> Boxed:
        """Fetch a value as a Boxed, or the empty Boxed if name is absent."""
        found, value = self.find(name, Boxed)
        return value if found else Boxed.EMPTY

    def __getitem__(self, name: str) -> Boxed:
        return self.index(name)

    def _select(self, name: str, target: Any, policy: MatchPolicy) -> Entry | None:
        selected = None
        for entry in self._entries:
            if entry.matches(name, target):
                if policy is MatchPolicy.FIRST:
                    return entry
                selected = entry
        return selected

    def value(self, name: str, target: Any = None, policy: MatchPolicy = MatchPolicy.FIRST) -> Any:
        """Return a value by name.

        Without a target type, the first entry for name is returned in its
        own type. With a target, only entries whose type fits are
        considered and policy picks among them; if none fit, the target's
        zero value is returned.

        Raises:
            KeyError: If name is not a key of this hash at all.
        """
        if not self.has_key(name):
            raise KeyError(f"Key '{name}' not found in Hash")

        if target is None:
            return next(entry.value for entry in self._entries if entry.key == name)

        entry = self._select(name, target, policy)
        if entry is None:
            return default_value(target)
        return convert(entry.value, target)

    def values(self, target: Any = Boxed) -> list[Any]:
        """Return every value converted to target, in definition order.

        Raises:
            ConversionError: If any value cannot be converted.
        """
        return [convert(entry.value, target) for entry in self._entries]

    # -- Iteration --------------------------------------------------------

    def __iter__(self) -> Iterator[Boxed]:
        for entry in self._entries:
            yield Boxed(entry.value)

    def items(self) -> Iterator[tuple[str, Boxed]]:
        """Iterate over (key, Boxed value) pairs in definition order."""
        for entry in self._entries:
            yield entry.key, Boxed(entry.value)

    # -- Combinator -------------------------------------------------------

    def concat(self, other: Hash) -> Hash:
        """Return a new Hash with this hash's entries followed by other's."""
        if not isinstance(other, Hash):
            raise TypeError(f"Cannot concatenate Hash with '{type(other).__name__}'")
        return Hash(*self._entries, *other._entries)

    def __add__(self, other: object) -> Hash:
        if not isinstance(other, Hash):
            return NotImplemented
        return self.concat(other)

    # -- Projector --------------------------------------------------------

    def apply(
        self,
        record: Any,
        policy: MatchPolicy = MatchPolicy.FIRST,
        registry: RecordRegistry | None = None,
    ) -> Any:
        """Assign this hash's values onto the matching fields of record.

        A field is assigned when a key has its name and at least one entry
        under that key has a type that fits the field. Other fields keep
        their current values. record may be an instance or a class; frozen
        dataclass instances are copied rather than mutated.

        Returns:
            The record, or the updated copy for frozen dataclasses.
        """
        from typed_hash.record import default_registry

        definition = (registry or default_registry).definition_for(record)
        owner = record if isinstance(record, type) else type(record)
        updates = []

        for field_def in definition.fields:
            if not self.has_key(field_def.name):
                continue
            entry = self._select(field_def.name, field_def.type_hint, policy)
            if entry is None:
                logger.debug(
                    "Skipping %s.%s: no entry of type %s",
                    definition.name,
                    field_def.name,
                    type_name(field_def.type_hint),
                )
                continue
            updates.append((field_def, convert(entry.value, field_def.type_hint)))

        if definition.frozen and not isinstance(record, type):
            init_names = {f.name for f in dataclasses.fields(record) if f.init}
            changes = {}
            late = {}
            for field_def, value in updates:
                if field_def.static:
                    field_def.set(owner, value)
                elif field_def.name in init_names:
                    changes[field_def.name] = value
                else:
                    late[field_def.name] = value
            logger.debug("Applied %d field(s) to frozen %s", len(updates), definition.name)
            if not (changes or late):
                return record
            updated = dataclasses.replace(record, **changes)
            # replace() cannot take init=False fields; set them on the copy.
            for name, value in late.items():
                object.__setattr__(updated, name, value)
            return updated

        for field_def, value in updates:
            field_def.set(owner if field_def.static else record, value)
        logger.debug("Applied %d field(s) to %s", len(updates), definition.name)
        return record

    # -- Protocol ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hash):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return builtins.hash(self._entries)

    def to_literal(self) -> str:
        """Render the entries in the syntax accepted by Hash.parse()."""
        return ", ".join(f"{entry.key} => {format_value(entry.value)}" for entry in self._entries)

    def __repr__(self) -> str:
        return f"Hash({self.to_literal()})"


def hash_of(*entries: Entry | tuple[str, Any], **values: Any) -> Hash:
    """Shorthand constructor.

    Positional items follow the Hash() rules; keyword arguments are plain
    values and are appended after them in order.
    """
    return Hash(*entries, *(Entry.of(key, value) for key, value in values.items()))


def is_hash(obj: Any) -> bool:
    """Check whether obj is a Hash or the Hash type."""
    if isinstance(obj, type):
        return issubclass(obj, Hash)
    return isinstance(obj, Hash)


def hashify(*entries: Entry | tuple[str, Any], **values: Any) -> Any:
    """Class decorator initializing static fields from a Hash.

    The hash is applied once, when the class is defined.
    """
    source = hash_of(*entries, **values)

    def decorate(cls: type) -> type:
        if not isinstance(cls, type):
            raise TypeError(f"Can only hashify a class, got '{type(cls).__name__}'")
        return source.apply(cls)

    return decorate
