# Record data model
"""
Record data model for ipstat.

RECORDS ARE IMMUTABLE - the capture layer creates one per packet and the
analysis layer only reads them. A capture session keeps them in an
append-only history that is cleared when a new session starts.
"""

from dataclasses import dataclass
from datetime import datetime
from ipaddress import IPv4Address
from typing import Any, Dict, Optional, Tuple

from .protocols import AppProtocol, TransProtocol

U16_MAX = 0xFFFF

TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# Column headings in the same order as Record.to_row(); they double as the
# localized field names accepted by the filter language.
COLUMN_TITLES = (
    "时间",
    "源IP",
    "源端口",
    "目的IP",
    "目的端口",
    "IP分组长度",
    "IP数据长度",
    "传输层协议",
    "报文段数据长度",
    "应用层协议",
)


def saturate_u16(value: int) -> int:
    """Clamp a byte count into the unsigned 16-bit range."""
    if value < 0:
        return 0
    return value if value <= U16_MAX else U16_MAX


def local_time(value: datetime) -> datetime:
    """Attach the local time zone to naive datetimes."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


@dataclass(frozen=True)  # IMMUTABLE: shared between history, stats and plot
class Record:
    """
    One observed IPv4 packet.

    Optional fields are None when they do not apply to the packet or could
    not be parsed, e.g. ICMP packets carry no ports and no application
    protocol.
    """
    time: datetime
    """Capture time, local time zone, microsecond resolution"""

    length: int
    """Total packet length in bytes (saturates at 65535)"""

    trans_proto: TransProtocol
    """Protocol number from the IPv4 header"""

    src_ip: Optional[IPv4Address] = None
    src_port: Optional[int] = None
    dest_ip: Optional[IPv4Address] = None
    dest_port: Optional[int] = None

    ip_payload_len: Optional[int] = None
    """Bytes after the IPv4 header"""

    trans_payload_len: Optional[int] = None
    """Bytes after the TCP/UDP header"""

    app_proto: AppProtocol = AppProtocol.UNKNOWN

    def __post_init__(self):
        """Normalize after initialization."""
        object.__setattr__(self, 'time', local_time(self.time))
        object.__setattr__(self, 'length', saturate_u16(self.length))
        if self.ip_payload_len is not None:
            object.__setattr__(self, 'ip_payload_len', saturate_u16(self.ip_payload_len))
        if self.trans_payload_len is not None:
            object.__setattr__(self, 'trans_payload_len', saturate_u16(self.trans_payload_len))
        for name in ('src_ip', 'dest_ip'):
            value = getattr(self, name)
            if value is not None and not isinstance(value, IPv4Address):
                object.__setattr__(self, name, IPv4Address(value))

    @property
    def has_app_proto(self) -> bool:
        """Application protocol is only meaningful for TCP and UDP."""
        return self.trans_proto.is_tcp_or_udp

    def to_row(self) -> Tuple[str, ...]:
        """Display strings, one per column of COLUMN_TITLES."""
        return (
            self.time.strftime(TIME_FORMAT),
            _opt(self.src_ip),
            _opt(self.src_port),
            _opt(self.dest_ip),
            _opt(self.dest_port),
            str(self.length),
            _opt(self.ip_payload_len),
            str(self.trans_proto),
            _opt(self.trans_payload_len),
            str(self.app_proto) if self.has_app_proto else "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "src_ip": str(self.src_ip) if self.src_ip is not None else None,
            "src_port": self.src_port,
            "dest_ip": str(self.dest_ip) if self.dest_ip is not None else None,
            "dest_port": self.dest_port,
            "len": self.length,
            "ip_payload_len": self.ip_payload_len,
            "trans_proto": str(self.trans_proto),
            "trans_payload_len": self.trans_payload_len,
            "app_proto": str(self.app_proto) if self.has_app_proto else None,
        }


def _opt(value) -> str:
    return "" if value is None else str(value)
