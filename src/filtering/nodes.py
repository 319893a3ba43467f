"""Filter expression tree.

Nodes are immutable; a RecordFilter owns one tree and a new tree replaces it
wholesale on every successful compile.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Operator(Enum):
    EQ = "=="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    @property
    def is_ordering(self) -> bool:
        return self not in (Operator.EQ, Operator.NE)

    def __str__(self) -> str:
        return self.value


EQUALITY_OPERATORS = frozenset(op for op in Operator if not op.is_ordering)
ALL_OPERATORS = frozenset(Operator)


class Field(Enum):
    TIME = "time"
    SRC_IP = "src_ip"
    SRC_PORT = "src_port"
    DEST_IP = "dest_ip"
    DEST_PORT = "dest_port"
    LEN = "len"
    IP_PAYLOAD_LEN = "ip_payload_len"
    TRANS_PROTO = "trans_proto"
    TRANS_PAYLOAD_LEN = "trans_payload_len"
    APP_PROTO = "app_proto"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Comparison:
    field: Field
    operator: Operator
    literal: Any

    def __str__(self) -> str:
        return f"{self.field} {self.operator} {_format_literal(self.literal)}"


@dataclass(frozen=True)
class Not:
    operand: "Predicate"

    def __str__(self) -> str:
        return f"!({self.operand})"


@dataclass(frozen=True)
class And:
    left: "Predicate"
    right: "Predicate"

    def __str__(self) -> str:
        return f"({self.left}) && ({self.right})"


@dataclass(frozen=True)
class Or:
    left: "Predicate"
    right: "Predicate"

    def __str__(self) -> str:
        return f"({self.left}) || ({self.right})"


Predicate = Union[Comparison, Not, And, Or]


def _format_literal(literal: Any) -> str:
    # datetime literals print the way the grammar reads them
    strftime = getattr(literal, "strftime", None)
    if strftime is not None:
        return strftime("%Y-%m-%d %H:%M:%S.%f")
    if getattr(literal, "is_unknown", False):
        return "Unknown"
    return str(literal)
