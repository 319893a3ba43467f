"""Scanner for filter expressions.

Tokens are read on demand by the parser because the shape of a literal
(a timestamp may contain a space) depends on where it appears. Whitespace
between tokens is skipped.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import FilterSyntaxError, InvalidOperator
from .nodes import Operator

_SPACE_RE = re.compile(r"\s*")
_IDENT_RE = re.compile(r"[^\W\d]\w*")
_OPERATOR_RE = re.compile(r"==|!=|>=|>|<=|<")
_TIME_LITERAL_RE = re.compile(r"\d+-\d+-\d+(?: \d+:\d+:\d+(?:\.\d+)?)?")
_WORD_LITERAL_RE = re.compile(r"[.\w]+")
_JUNK_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class Token:
    text: str
    position: int


class Scanner:
    """Cursor over the expression text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_space(self) -> None:
        self.pos = _SPACE_RE.match(self.text, self.pos).end()

    def at_end(self) -> bool:
        self.skip_space()
        return self.pos >= len(self.text)

    def peek(self, symbol: str) -> bool:
        self.skip_space()
        return self.text.startswith(symbol, self.pos)

    def accept(self, symbol: str) -> bool:
        if self.peek(symbol):
            self.pos += len(symbol)
            return True
        return False

    def expect(self, symbol: str) -> None:
        if not self.accept(symbol):
            raise FilterSyntaxError(f'expected "{symbol}" {self._where()}', self.pos)

    def _match(self, pattern: "re.Pattern") -> Optional[Token]:
        self.skip_space()
        match = pattern.match(self.text, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return Token(match.group(), match.start())

    def identifier(self) -> Token:
        token = self._match(_IDENT_RE)
        if token is None:
            raise FilterSyntaxError(f"expected a field name {self._where()}", self.pos)
        return token

    def operator(self) -> Operator:
        token = self._match(_OPERATOR_RE)
        if token is None:
            if self.at_end():
                raise FilterSyntaxError("expected an operator at end of input", self.pos)
            junk = _JUNK_RE.match(self.text, self.pos).group()
            raise InvalidOperator(junk)
        return Operator(token.text)

    def literal(self) -> Token:
        token = self._match(_TIME_LITERAL_RE) or self._match(_WORD_LITERAL_RE)
        if token is None:
            raise FilterSyntaxError(f"expected a value {self._where()}", self.pos)
        return token

    def _where(self) -> str:
        if self.pos >= len(self.text):
            return "at end of input"
        return f'at "{self.text[self.pos:self.pos + 10]}"'
