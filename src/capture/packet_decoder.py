"""
Pure IPv4 packet decoding into Records.

This module is deterministic and best-effort:
- It never throws on malformed/truncated packets
- Fields that cannot be parsed stay None on the Record
- It only parses headers (payload bytes are counted, not inspected)
"""
from __future__ import annotations

import struct
from datetime import datetime
from ipaddress import IPv4Address
from typing import Optional, Tuple

from models.protocols import (
    AppProtocol, TransProtocol, IP_PROTO_TCP, IP_PROTO_UDP, UNKNOWN_PROTOCOL_NUMBER,
)
from models.record import Record

IPV4_MIN_HEADER = 20
TCP_MIN_HEADER = 20
UDP_HEADER = 8


def decode_ipv4(data: bytes, timestamp: datetime) -> Optional[Record]:
    """
    Decode raw IPv4 bytes captured at ``timestamp``.

    Returns None for an empty read. Bytes that are not a parsable IPv4
    packet still yield a Record carrying only time and length.
    """
    cap_len = len(data)
    if cap_len == 0:
        return None

    fields = _parse_with_recovery(data)
    if fields is None:
        return Record(time=timestamp, length=cap_len, trans_proto=TransProtocol(UNKNOWN_PROTOCOL_NUMBER))

    src_ip, dst_ip, ip_proto, payload = fields
    src_port = dst_port = trans_payload_len = None
    app_proto = AppProtocol.UNKNOWN

    if payload:
        l4 = _parse_l4(payload, ip_proto)
        if l4 is not None:
            src_port, dst_port, trans_payload_len = l4
            app_proto = AppProtocol.from_ports(src_port, dst_port)

    return Record(
        time=timestamp,
        length=cap_len,
        trans_proto=TransProtocol(ip_proto),
        src_ip=src_ip,
        src_port=src_port,
        dest_ip=dst_ip,
        dest_port=dst_port,
        ip_payload_len=len(payload),
        trans_payload_len=trans_payload_len,
        app_proto=app_proto,
    )


def ip_payload(data: bytes) -> Optional[bytes]:
    """Bytes after the IPv4 header, or None when the header does not parse."""
    fields = _parse_with_recovery(data)
    return fields[3] if fields is not None else None


def _parse_with_recovery(data: bytes) -> Optional[Tuple[IPv4Address, IPv4Address, int, bytes]]:
    fields = _parse_ipv4(data)
    if fields is None and len(data) > 4 and _total_length(data) < IPV4_MIN_HEADER:
        # Some stacks hand over a zeroed total-length field; patch it with
        # the number of bytes read and try again.
        patched = bytearray(data)
        struct.pack_into("!H", patched, 2, min(len(data), 0xFFFF))
        fields = _parse_ipv4(bytes(patched))
    return fields


def _total_length(data: bytes) -> int:
    if len(data) < 4:
        return 0
    return struct.unpack_from("!H", data, 2)[0]


def _parse_ipv4(data: bytes) -> Optional[Tuple[IPv4Address, IPv4Address, int, bytes]]:
    cap_len = len(data)
    if cap_len < IPV4_MIN_HEADER:
        return None
    vihl = data[0]
    version = vihl >> 4
    ihl = (vihl & 0x0F) * 4
    if version != 4 or ihl < IPV4_MIN_HEADER or ihl > cap_len:
        return None
    total_length = _total_length(data)
    if total_length < ihl or total_length > cap_len:
        return None

    ip_proto = data[9]
    src_ip = IPv4Address(data[12:16])
    dst_ip = IPv4Address(data[16:20])
    return src_ip, dst_ip, ip_proto, data[ihl:total_length]


def _parse_l4(payload: bytes, ip_proto: int) -> Optional[Tuple[int, int, int]]:
    """Return (src_port, dst_port, payload_len) for TCP/UDP."""
    if ip_proto == IP_PROTO_TCP:
        if len(payload) < TCP_MIN_HEADER:
            return None
        src_port, dst_port = struct.unpack_from("!HH", payload, 0)
        data_offset = (payload[12] >> 4) * 4
        if data_offset < TCP_MIN_HEADER or data_offset > len(payload):
            return None
        return src_port, dst_port, len(payload) - data_offset

    if ip_proto == IP_PROTO_UDP:
        if len(payload) < UDP_HEADER:
            return None
        src_port, dst_port = struct.unpack_from("!HH", payload, 0)
        return src_port, dst_port, len(payload) - UDP_HEADER

    return None
