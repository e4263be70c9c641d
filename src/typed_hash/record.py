"""Record definitions used to project a Hash onto object fields."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, get_args, get_origin, get_type_hints

logger = logging.getLogger(__name__)


@dataclass
class FieldDefinition:
    """A named, typed field of a record with its accessors.

    When no getter or setter is given, attribute access by name is used.
    Static fields live on the class and are written there even when a
    Hash is applied to an instance.
    """

    name: str
    type_hint: Any
    getter: Callable[[Any], Any] | None = field(default=None, repr=False)
    setter: Callable[[Any, Any], None] | None = field(default=None, repr=False)
    static: bool = False

    def get(self, target: Any) -> Any:
        """Read this field from target."""
        if self.getter is not None:
            return self.getter(target)
        return getattr(target, self.name)

    def set(self, target: Any, value: Any) -> None:
        """Write value into this field of target."""
        if self.setter is not None:
            self.setter(target, value)
        else:
            setattr(target, self.name, value)


@dataclass
class RecordDefinition:
    """Field table for one record type."""

    name: str
    fields: list[FieldDefinition] = field(default_factory=list)
    frozen: bool = False

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None


def _is_classvar(hint: Any) -> bool:
    return hint is ClassVar or get_origin(hint) is ClassVar


def _unwrap_classvar(hint: Any) -> Any:
    if hint is ClassVar:
        return Any
    if get_origin(hint) is ClassVar:
        return get_args(hint)[0]
    return hint


def _is_frozen(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def _resolved_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references: fall back to the raw annotations.
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def reflect_record(cls: type) -> RecordDefinition:
    """Build a RecordDefinition from a dataclass or an annotated class."""
    hints = _resolved_hints(cls)

    if dataclasses.is_dataclass(cls):
        fields = [
            FieldDefinition(name=f.name, type_hint=hints.get(f.name, f.type))
            for f in dataclasses.fields(cls)
        ]
        # Class-level annotations excluded from dataclass fields (ClassVar)
        # are still static fields of the record.
        known = {f.name for f in fields}
        for name, hint in hints.items():
            if name not in known and not name.startswith("_"):
                fields.append(
                    FieldDefinition(name=name, type_hint=_unwrap_classvar(hint), static=True)
                )
        return RecordDefinition(
            name=cls.__qualname__,
            fields=fields,
            frozen=_is_frozen(cls),
        )

    fields = [
        FieldDefinition(name=name, type_hint=_unwrap_classvar(hint), static=_is_classvar(hint))
        for name, hint in hints.items()
        if not name.startswith("_")
    ]
    return RecordDefinition(name=cls.__qualname__, fields=fields)


class RecordRegistry:
    """Registry of record field tables, keyed by class.

    Explicit registrations take precedence. Classes that were never
    registered are reflected once and the result is cached.
    """

    def __init__(self) -> None:
        self._records: dict[type, RecordDefinition] = {}
        self._reflected: dict[type, RecordDefinition] = {}

    def register(
        self,
        cls: type,
        fields: dict[str, Any] | list[FieldDefinition],
    ) -> RecordDefinition:
        """Register an explicit field table for cls.

        Args:
            cls: The record class.
            fields: Either a mapping of field name to type, or a list of
                FieldDefinition objects carrying custom accessors.

        Raises:
            ValueError: If cls is already registered.
        """
        if cls in self._records:
            raise ValueError(f"Record '{cls.__qualname__}' is already registered")
        if isinstance(fields, dict):
            field_defs = [
                FieldDefinition(name=name, type_hint=_unwrap_classvar(hint), static=_is_classvar(hint))
                for name, hint in fields.items()
            ]
        else:
            field_defs = list(fields)
        definition = RecordDefinition(name=cls.__qualname__, fields=field_defs, frozen=_is_frozen(cls))
        self._records[cls] = definition
        self._reflected.pop(cls, None)
        return definition

    def get(self, cls: type) -> RecordDefinition | None:
        """Get the explicitly registered definition for cls."""
        return self._records.get(cls)

    def get_or_raise(self, cls: type) -> RecordDefinition:
        """Get the explicitly registered definition, raising if not found."""
        record = self._records.get(cls)
        if record is None:
            raise KeyError(f"Record '{cls.__qualname__}' not registered")
        return record

    def definition_for(self, target: Any) -> RecordDefinition:
        """Return the field table for a record instance or class."""
        cls = target if isinstance(target, type) else type(target)
        for klass in cls.__mro__:
            record = self._records.get(klass)
            if record is not None:
                return record

        record = self._reflected.get(cls)
        if record is None:
            record = reflect_record(cls)
            logger.debug("Reflected record %s with fields %s", record.name, record.field_names)
            self._reflected[cls] = record
        return record

    def list_records(self) -> list[str]:
        """List the names of all explicitly registered records."""
        return [record.name for record in self._records.values()]

    def __contains__(self, cls: type) -> bool:
        return cls in self._records


default_registry = RecordRegistry()


def record(_cls: type | None = None, *, registry: RecordRegistry | None = None, **fields: Any) -> Any:
    """Class decorator registering a field table for the decorated class.

    With no field arguments the class is reflected at decoration time;
    otherwise the keyword arguments map field names to types.
    """
    target_registry = registry if registry is not None else default_registry

    def decorate(cls: type) -> type:
        if fields:
            target_registry.register(cls, fields)
        else:
            target_registry.register(cls, reflect_record(cls).fields)
        return cls

    if _cls is not None:
        return decorate(_cls)
    return decorate
