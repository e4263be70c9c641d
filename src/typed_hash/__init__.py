"""Typed Hash - An immutable, multi-valued, typed key-value container."""

from typed_hash.hash import Hash, hash_of, hashify, is_hash
from typed_hash.parsing import HashParser, parse_hash
from typed_hash.record import (
    FieldDefinition,
    RecordDefinition,
    RecordRegistry,
    default_registry,
    record,
)
from typed_hash.types import (
    Boxed,
    ConversionError,
    Entry,
    MatchPolicy,
    Ref,
    convert,
    default_value,
    is_assignable,
    is_identifier,
)

__all__ = [
    # Main API
    "Hash",
    "hash_of",
    "hashify",
    "is_hash",
    "parse_hash",
    "HashParser",
    # Values
    "Boxed",
    "Entry",
    "Ref",
    "MatchPolicy",
    "ConversionError",
    "convert",
    "default_value",
    "is_assignable",
    "is_identifier",
    # Records
    "FieldDefinition",
    "RecordDefinition",
    "RecordRegistry",
    "default_registry",
    "record",
]

__version__ = "0.1.0"
