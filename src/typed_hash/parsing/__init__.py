"""Parsing module for the hash literal syntax."""

from typed_hash.parsing.hash_lexer import HashLexer
from typed_hash.parsing.hash_parser import HashParser, parse_hash

__all__ = [
    "HashLexer",
    "HashParser",
    "parse_hash",
]
