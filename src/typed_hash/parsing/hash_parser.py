"""Parser for the hash literal syntax."""

from __future__ import annotations

import logging
import threading
from typing import Any

import ply.yacc as yacc

from typed_hash.hash import Hash
from typed_hash.parsing.hash_lexer import HashLexer
from typed_hash.types import Entry

logger = logging.getLogger(__name__)


class HashParser:
    """Parser turning hash literal text into a Hash.

    ```
    x => 5, x => "10", flags => [true, false], nested => { a => 1 }
    ```

    Lists become tuples and braces become nested hashes.
    """

    tokens = HashLexer.tokens
    start = "hash_literal"

    def __init__(self) -> None:
        self.lexer = HashLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_hash_literal(self, p: yacc.YaccProduction) -> None:
        """hash_literal : entry_list
                        | entry_list COMMA"""
        p[0] = Hash(*p[1])

    def p_hash_literal_empty(self, p: yacc.YaccProduction) -> None:
        """hash_literal : empty"""
        p[0] = Hash()

    def p_entry_list_single(self, p: yacc.YaccProduction) -> None:
        """entry_list : entry"""
        p[0] = [p[1]]

    def p_entry_list_multiple(self, p: yacc.YaccProduction) -> None:
        """entry_list : entry_list COMMA entry"""
        p[0] = p[1] + [p[3]]

    def p_entry(self, p: yacc.YaccProduction) -> None:
        """entry : IDENTIFIER ARROW value"""
        p[0] = Entry.of(p[1], p[3])

    def p_value_scalar(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_hash(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE hash_literal RBRACE"""
        p[0] = p[2]

    def p_value_list(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET value_list RBRACKET
                 | LBRACKET value_list COMMA RBRACKET"""
        p[0] = tuple(p[2])

    def p_value_list_empty(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET RBRACKET"""
        p[0] = ()

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno}, position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)
        logger.debug("Built hash literal parser")

    def parse(self, data: str) -> Hash:
        """Parse hash literal text and return the Hash it describes."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        return self.parser.parse(data, lexer=self.lexer.lexer)


_shared_parser: HashParser | None = None
_shared_lock = threading.Lock()


def parse_hash(text: str) -> Hash:
    """Parse hash literal text into a Hash.

    The LALR tables are built on first use and shared by later calls.
    """
    global _shared_parser
    with _shared_lock:
        if _shared_parser is None:
            _shared_parser = HashParser()
        return _shared_parser.parse(text)
