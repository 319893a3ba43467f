"""Three-level traffic totals (network / transport / application)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from models.record import Record

NETWORK_COLUMNS = ("分组数", "字节数")
TRANSPORT_COLUMNS = ("传输层协议", "分组数", "字节数", "网络层字节数")
APPLICATION_COLUMNS = ("应用层协议", "分组数", "字节数", "网络层字节数", "传输层字节数")


@dataclass
class NetworkStat:
    packets: int = 0
    bytes: int = 0

    def to_row(self) -> Tuple[str, str]:
        return str(self.packets), str(self.bytes)


@dataclass
class TransportStat:
    packets: int = 0
    bytes: int = 0
    """Sum of IP payload lengths"""
    ip_bytes: int = 0
    """Sum of total packet lengths"""

    def to_row(self, name: str) -> Tuple[str, str, str, str]:
        return name, str(self.packets), str(self.bytes), str(self.ip_bytes)


@dataclass
class ApplicationStat:
    packets: int = 0
    bytes: int = 0
    """Sum of TCP/UDP payload lengths"""
    ip_bytes: int = 0
    trans_bytes: int = 0
    """Sum of IP payload lengths"""

    def to_row(self, name: str) -> Tuple[str, str, str, str, str]:
        return (name, str(self.packets), str(self.bytes),
                str(self.ip_bytes), str(self.trans_bytes))


class StatRecord:
    """
    Running totals over a record stream.

    The aggregator knows nothing about filters; callers pass it only the
    records that passed the active filter and clear() it when the filter
    changes.
    """

    def __init__(self):
        self.network = NetworkStat()
        self.transport: Dict[str, TransportStat] = {}
        self.application: Dict[str, ApplicationStat] = {}

    def clear(self) -> None:
        self.network = NetworkStat()
        self.transport.clear()
        self.application.clear()

    def update(self, record: Record) -> None:
        self.network.packets += 1
        self.network.bytes += record.length

        if record.ip_payload_len is None:
            return
        trans = self.transport.setdefault(str(record.trans_proto), TransportStat())
        trans.packets += 1
        trans.bytes += record.ip_payload_len
        trans.ip_bytes += record.length

        if record.trans_payload_len is None:
            return
        app = self.application.setdefault(str(record.app_proto), ApplicationStat())
        app.packets += 1
        app.bytes += record.trans_payload_len
        app.ip_bytes += record.length
        app.trans_bytes += record.ip_payload_len

    def update_multiple(self, records: Iterable[Record]) -> None:
        for record in records:
            self.update(record)

    def transport_rows(self) -> List[Tuple[str, ...]]:
        return [self.transport[name].to_row(name) for name in sorted(self.transport)]

    def application_rows(self) -> List[Tuple[str, ...]]:
        return [self.application[name].to_row(name) for name in sorted(self.application)]

    def to_dict(self) -> Dict:
        return {
            "network": {"packets": self.network.packets, "bytes": self.network.bytes},
            "transport": {
                name: {"packets": s.packets, "bytes": s.bytes, "ip_bytes": s.ip_bytes}
                for name, s in sorted(self.transport.items())
            },
            "application": {
                name: {"packets": s.packets, "bytes": s.bytes,
                       "ip_bytes": s.ip_bytes, "trans_bytes": s.trans_bytes}
                for name, s in sorted(self.application.items())
            },
        }
