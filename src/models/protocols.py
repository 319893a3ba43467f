"""
Protocol vocabularies shared by the record model and the filter language.

TransProtocol is the network-layer protocol carried in the IPv4 header
(the "transport" protocol from the point of view of the record table).
AppProtocol is a closed set of application protocols guessed from
well-known ports.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

# IANA assigned internet protocol numbers 0..142, in order.
_IANA_NAMES = (
    "Hopopt", "ICMP", "Igmp", "Ggp", "IPv4", "St", "TCP", "Cbt", "Egp", "Igp",
    "BbnRccMon", "NvpII", "Pup", "Argus", "Emcon", "Xnet", "Chaos", "UDP", "Mux",
    "DcnMeas", "Hmp", "Prm", "XnsIdp", "Trunk1", "Trunk2", "Leaf1", "Leaf2",
    "Rdp", "Irtp", "IsoTp4", "Netblt", "MfeNsp", "MeritInp", "Dccp", "ThreePc",
    "Idpr", "Xtp", "Ddp", "IdprCmtp", "TpPlusPlus", "Il", "IPv6", "Sdrp",
    "IPv6Route", "IPv6Frag", "Idrp", "Rsvp", "Gre", "Dsr", "Bna", "Esp", "Ah",
    "INlsp", "Swipe", "Narp", "Mobile", "Tlsp", "Skip", "IPv6ICMP", "IPv6NoNxt",
    "IPv6Opts", "HostInternal", "Cftp", "LocalNetwork", "SatExpak", "Kryptolan",
    "Rvd", "Ippc", "DistributedFs", "SatMon", "Visa", "Ipcv", "Cpnx", "Cphb",
    "Wsn", "Pvp", "BrSatMon", "SunNd", "WbMon", "WbExpak", "IsoIp", "Vmtp",
    "SecureVmtp", "Vines", "TtpOrIptm", "NsfnetIgp", "Dgp", "Tcf", "Eigrp",
    "OspfigP", "SpriteRpc", "Larp", "Mtp", "Ax25", "IpIp", "Micp", "SccSp",
    "Etherip", "Encap", "PrivEncryption", "Gmtp", "Ifmp", "Pnni", "Pim", "Aris",
    "Scps", "Qnx", "AN", "IpComp", "Snp", "CompaqPeer", "IpxInIp", "Vrrp", "Pgm",
    "ZeroHop", "L2tp", "Ddx", "Iatp", "Stp", "Srp", "Uti", "Smp", "Sm", "Ptp",
    "IsisOverIpv4", "Fire", "Crtp", "Crudp", "Sscopmce", "Iplt", "Sps", "Pipe",
    "Sctp", "Fc", "RsvpE2eIgnore", "MobilityHeader", "UdpLite", "MplsInIp",
    "Manet", "Hip", "Shim6", "Wesp", "Rohc",
)

IP_PROTOCOL_NAMES: Dict[int, str] = dict(enumerate(_IANA_NAMES))
IP_PROTOCOL_NAMES[253] = "Test1"
IP_PROTOCOL_NAMES[254] = "Test2"

_IP_PROTOCOL_NUMBERS: Dict[str, int] = {name: number for number, name in IP_PROTOCOL_NAMES.items()}

IP_PROTO_ICMP = 1
IP_PROTO_TCP = 6
IP_PROTO_UDP = 17

# 255 is reserved by IANA, so it never collides with a named protocol
UNKNOWN_PROTOCOL_NUMBER = 255


@dataclass(frozen=True)
class TransProtocol:
    """Network-layer protocol number with its display name."""
    number: int

    @property
    def is_unknown(self) -> bool:
        return self.number not in IP_PROTOCOL_NAMES

    @property
    def name(self) -> str:
        return IP_PROTOCOL_NAMES.get(self.number, "Unknown")

    @property
    def is_tcp_or_udp(self) -> bool:
        return self.number in (IP_PROTO_TCP, IP_PROTO_UDP)

    @classmethod
    def from_name(cls, name: str) -> Optional["TransProtocol"]:
        """Look up a protocol by its exact (case-sensitive) display name."""
        if name == "Unknown":
            return cls(UNKNOWN_PROTOCOL_NUMBER)
        number = _IP_PROTOCOL_NUMBERS.get(name)
        if number is None:
            return None
        return cls(number)

    def __str__(self) -> str:
        if self.is_unknown:
            return f"Unknown ({self.number})"
        return self.name


TCP = TransProtocol(IP_PROTO_TCP)
UDP = TransProtocol(IP_PROTO_UDP)
ICMP = TransProtocol(IP_PROTO_ICMP)


def same_protocol(a: TransProtocol, b: TransProtocol) -> bool:
    """Protocol equality used by filters: all unknown codes are one category."""
    return a == b or (a.is_unknown and b.is_unknown)


class AppProtocol(Enum):
    FTP = "FTP"
    SSH = "SSH"
    TELNET = "Telnet"
    SMTP = "SMTP"
    DNS = "DNS"
    DHCP = "DHCP"
    HTTP = "HTTP"
    POP3 = "POP3"
    NNTP = "NNTP"
    NTP = "NTP"
    IMAP = "IMAP"
    SNMP = "SNMP"
    IRC = "IRC"
    HTTPS = "HTTPS"
    UNKNOWN = "Unknown"

    @classmethod
    def from_name(cls, name: str) -> Optional["AppProtocol"]:
        try:
            return cls(name)
        except ValueError:
            return None

    @classmethod
    def from_port(cls, port: int) -> "AppProtocol":
        return WELL_KNOWN_PORTS.get(port, cls.UNKNOWN)

    @classmethod
    def from_ports(cls, src_port: int, dest_port: int) -> "AppProtocol":
        """Classify a conversation; the source port is consulted first."""
        proto = cls.from_port(src_port)
        if proto is cls.UNKNOWN:
            proto = cls.from_port(dest_port)
        return proto

    def __str__(self) -> str:
        return self.value


WELL_KNOWN_PORTS: Dict[int, AppProtocol] = {
    20: AppProtocol.FTP,
    21: AppProtocol.FTP,
    22: AppProtocol.SSH,
    23: AppProtocol.TELNET,
    25: AppProtocol.SMTP,
    53: AppProtocol.DNS,
    67: AppProtocol.DHCP,
    68: AppProtocol.DHCP,
    80: AppProtocol.HTTP,
    110: AppProtocol.POP3,
    119: AppProtocol.NNTP,
    123: AppProtocol.NTP,
    143: AppProtocol.IMAP,
    161: AppProtocol.SNMP,
    194: AppProtocol.IRC,
    443: AppProtocol.HTTPS,
}
