"""Per-field filter rules.

Every Field has one FieldSpec carrying its aliases, the parser for its
literal type, the operators it accepts and how to read the value from a
Record. The parser and evaluator consult this table instead of matching
on field/operator/literal combinations.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from ipaddress import AddressValueError, IPv4Address
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from models.protocols import AppProtocol, TransProtocol, same_protocol
from models.record import Record, saturate_u16

from .errors import InvalidLiteral
from .nodes import ALL_OPERATORS, EQUALITY_OPERATORS, Field, Operator

_TIME_RE = re.compile(
    r"(\d+)-(\d+)-(\d+)"
    r"(?: (\d+):(\d+):(\d+)(?:\.(\d+))?)?"
)
_INT_RE = re.compile(r"[0-9]+")


def parse_time(text: str) -> datetime:
    """``YYYY-MM-DD[ HH:MM:SS[.fraction]]`` in the local time zone."""
    match = _TIME_RE.fullmatch(text)
    if match is None:
        raise InvalidLiteral(text)
    year, month, day, hour, minute, second, fraction = match.groups()
    # fractions beyond microseconds are truncated
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        naive = datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0), micro,
        )
        # shifting into the local zone can leave datetime's range near 1 and 9999
        return naive.astimezone()
    except (ValueError, OverflowError, OSError):
        raise InvalidLiteral(text)


def parse_ipv4(text: str) -> IPv4Address:
    try:
        return IPv4Address(text)
    except AddressValueError:
        raise InvalidLiteral(text)


def parse_port(text: str) -> int:
    if _INT_RE.fullmatch(text) is None:
        raise InvalidLiteral(text)
    port = int(text)
    if port > 0xFFFF:
        raise InvalidLiteral(text)
    return port


def parse_len(text: str) -> int:
    """Lengths saturate to 65535 instead of failing."""
    if _INT_RE.fullmatch(text) is None:
        raise InvalidLiteral(text)
    return saturate_u16(int(text))


def parse_trans_proto(text: str) -> TransProtocol:
    proto = TransProtocol.from_name(text)
    if proto is None:
        raise InvalidLiteral(text)
    return proto


def parse_app_proto(text: str) -> AppProtocol:
    proto = AppProtocol.from_name(text)
    if proto is None:
        raise InvalidLiteral(text)
    return proto


def _exact(a: Any, b: Any) -> bool:
    return a == b


@dataclass(frozen=True)
class FieldSpec:
    field: Field
    aliases: Tuple[str, ...]
    parse_literal: Callable[[str], Any]
    operators: FrozenSet[Operator]
    getter: Callable[[Record], Any]
    equals: Callable[[Any, Any], bool] = _exact

    def supports(self, operator: Operator) -> bool:
        return operator in self.operators

    def value(self, record: Record) -> Any:
        return self.getter(record)


FIELD_SPECS: Dict[Field, FieldSpec] = {
    spec.field: spec
    for spec in (
        FieldSpec(Field.TIME, ("time", "时间"),
                  parse_time, ALL_OPERATORS, lambda r: r.time),
        FieldSpec(Field.SRC_IP, ("src_ip", "源IP"),
                  parse_ipv4, EQUALITY_OPERATORS, lambda r: r.src_ip),
        FieldSpec(Field.SRC_PORT, ("src_port", "源端口"),
                  parse_port, ALL_OPERATORS, lambda r: r.src_port),
        FieldSpec(Field.DEST_IP, ("dest_ip", "目的IP"),
                  parse_ipv4, EQUALITY_OPERATORS, lambda r: r.dest_ip),
        FieldSpec(Field.DEST_PORT, ("dest_port", "目的端口"),
                  parse_port, ALL_OPERATORS, lambda r: r.dest_port),
        FieldSpec(Field.LEN, ("len", "IP分组长度"),
                  parse_len, ALL_OPERATORS, lambda r: r.length),
        FieldSpec(Field.IP_PAYLOAD_LEN, ("ip_payload_len", "IP数据长度"),
                  parse_len, ALL_OPERATORS, lambda r: r.ip_payload_len),
        FieldSpec(Field.TRANS_PROTO, ("trans_proto", "trans_protocol", "传输层协议"),
                  parse_trans_proto, EQUALITY_OPERATORS, lambda r: r.trans_proto,
                  equals=same_protocol),
        FieldSpec(Field.TRANS_PAYLOAD_LEN, ("trans_payload_len", "报文段数据长度"),
                  parse_len, ALL_OPERATORS, lambda r: r.trans_payload_len),
        FieldSpec(Field.APP_PROTO, ("app_proto", "app_protocol", "应用层协议"),
                  parse_app_proto, EQUALITY_OPERATORS, lambda r: r.app_proto),
    )
}

FIELD_ALIASES: Dict[str, Field] = {
    alias: spec.field
    for spec in FIELD_SPECS.values()
    for alias in spec.aliases
}


def lookup_field(name: str) -> Optional[FieldSpec]:
    field = FIELD_ALIASES.get(name)
    if field is None:
        return None
    return FIELD_SPECS[field]
