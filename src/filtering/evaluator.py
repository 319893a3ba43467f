"""Stateless evaluation of predicate trees against records."""
from __future__ import annotations

import logging
import operator as op
from dataclasses import dataclass
from typing import Iterable, Iterator

from models.record import Record

from .fields import FIELD_SPECS
from .nodes import And, Comparison, Not, Operator, Or, Predicate
from .parser import parse_filter

logger = logging.getLogger(__name__)

_ORDERING = {
    Operator.GT: op.gt,
    Operator.GE: op.ge,
    Operator.LT: op.lt,
    Operator.LE: op.le,
}


def evaluate(pred: Predicate, record: Record) -> bool:
    if isinstance(pred, Comparison):
        return _compare(pred, record)
    if isinstance(pred, Not):
        return not evaluate(pred.operand, record)
    if isinstance(pred, And):
        return evaluate(pred.left, record) and evaluate(pred.right, record)
    if isinstance(pred, Or):
        # both sides are evaluated, unlike And
        return evaluate(pred.left, record) | evaluate(pred.right, record)
    raise TypeError(f"not a predicate node: {pred!r}")


def _compare(cmp: Comparison, record: Record) -> bool:
    spec = FIELD_SPECS[cmp.field]
    value = spec.value(record)
    if cmp.operator is Operator.EQ:
        return value is not None and spec.equals(value, cmp.literal)
    if cmp.operator is Operator.NE:
        return value is None or not spec.equals(value, cmp.literal)
    if value is None:
        # an absent field orders below every literal
        return cmp.operator in (Operator.LT, Operator.LE)
    return _ORDERING[cmp.operator](value, cmp.literal)


@dataclass(frozen=True)
class RecordFilter:
    """A compiled filter: the parsed tree plus the text it came from."""
    predicate: Predicate
    source: str = ""

    def __call__(self, record: Record) -> bool:
        return evaluate(self.predicate, record)

    def select(self, records: Iterable[Record]) -> Iterator[Record]:
        return (record for record in records if evaluate(self.predicate, record))

    def describe(self) -> str:
        return str(self.predicate)


def compile_filter(text: str) -> RecordFilter:
    """Compile filter text; raises a FilterError subclass on bad input."""
    pred = parse_filter(text)
    logger.debug("compiled filter %r as %s", text, pred)
    return RecordFilter(pred, text)
