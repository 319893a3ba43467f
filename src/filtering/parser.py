"""Recursive-descent parser for filter expressions.

Grammar, lowest precedence first::

    or_expr    := and_expr ('||' and_expr)*
    and_expr   := term ('&&' term)*
    term       := '(' or_expr ')' | '!' '(' or_expr ')' | comparison
    comparison := field operator literal

The whole input must be consumed.
"""
from __future__ import annotations

from .errors import FilterSyntaxError, InvalidField, UnsupportedOperator
from .fields import lookup_field
from .lexer import Scanner
from .nodes import And, Comparison, Not, Or, Predicate


def parse_filter(text: str) -> Predicate:
    """Parse ``text`` into a predicate tree or raise a FilterError."""
    return Parser(text).parse()


class Parser:
    def __init__(self, text: str):
        self.scanner = Scanner(text)

    def parse(self) -> Predicate:
        if self.scanner.at_end():
            raise FilterSyntaxError("empty filter", 0)
        pred = self.parse_or()
        if not self.scanner.at_end():
            pos = self.scanner.pos
            raise FilterSyntaxError(
                f'unexpected "{self.scanner.text[pos:pos + 10]}"', pos
            )
        return pred

    def parse_or(self) -> Predicate:
        pred = self.parse_and()
        while self.scanner.accept("||"):
            pred = Or(pred, self.parse_and())
        return pred

    def parse_and(self) -> Predicate:
        pred = self.parse_term()
        while self.scanner.accept("&&"):
            pred = And(pred, self.parse_term())
        return pred

    def parse_term(self) -> Predicate:
        scanner = self.scanner
        if scanner.accept("("):
            pred = self.parse_or()
            scanner.expect(")")
            return pred
        # "!=" never starts a term, so a leading "!" is always negation
        if scanner.accept("!"):
            scanner.expect("(")
            pred = self.parse_or()
            scanner.expect(")")
            return Not(pred)
        return self.parse_comparison()

    def parse_comparison(self) -> Comparison:
        scanner = self.scanner
        name = scanner.identifier().text
        spec = lookup_field(name)
        if spec is None:
            raise InvalidField(name)
        operator = scanner.operator()
        raw = scanner.literal().text
        literal = spec.parse_literal(raw)
        if not spec.supports(operator):
            raise UnsupportedOperator(name, operator.value)
        return Comparison(spec.field, operator, literal)
