"""
Dummy capture backend for running without raw-socket privileges.
"""
import logging
import random
import struct
import threading
import time
from typing import Any, Dict, List, Optional

from models.protocols import IP_PROTO_ICMP, IP_PROTO_TCP, IP_PROTO_UDP

from .icapture_backend import CaptureConfig, QueuedCaptureBackend

logger = logging.getLogger(__name__)

_PEERS = [
    (bytes([192, 168, 1, 100]), bytes([93, 184, 216, 34])),
    (bytes([192, 168, 1, 100]), bytes([8, 8, 8, 8])),
    (bytes([10, 0, 0, 1]), bytes([10, 0, 0, 2])),
]
_SERVER_PORTS = [22, 53, 80, 123, 443, 8080]


def build_ipv4_packet(src: bytes, dst: bytes, proto: int, transport: bytes) -> bytes:
    """IPv4 header (no options) followed by ``transport``."""
    total_length = 20 + len(transport)
    header = struct.pack(
        "!BBHHHBBH4s4s",
        0x45, 0, total_length,
        0, 0,
        64, proto, 0,
        src, dst,
    )
    return header + transport


def build_tcp_segment(src_port: int, dst_port: int, payload: bytes = b"") -> bytes:
    offset_flags = (5 << 12) | 0x18  # PSH+ACK
    header = struct.pack("!HHIIHHHH", src_port, dst_port, 1, 1, offset_flags, 1024, 0, 0)
    return header + payload


def build_udp_datagram(src_port: int, dst_port: int, payload: bytes = b"") -> bytes:
    return struct.pack("!HHHH", src_port, dst_port, 8 + len(payload), 0) + payload


class DummyBackend(QueuedCaptureBackend):
    """Dummy backend that generates synthetic IPv4 packets."""

    backend_name = "dummy"

    def __init__(self, rate: float = 100.0, seed: Optional[int] = None):
        super().__init__()
        self._packet_counter = 0
        self._interval = 1.0 / rate if rate > 0 else 0.01
        self._random = random.Random(seed)

    def list_interfaces(self) -> List[Dict]:
        """Return dummy interfaces."""
        return [
            {
                'id': 'dummy0',
                'name': 'dummy0',
                'description': 'Dummy Ethernet Interface',
                'is_up': True,
                'ips': ['192.168.1.100'],
            },
            {
                'id': 'dummy1',
                'name': 'dummy1',
                'description': 'Dummy Loopback Interface',
                'is_up': True,
                'ips': ['10.0.0.1'],
            },
        ]

    def generate_packet(self) -> bytes:
        """One random TCP, UDP or ICMP packet."""
        self._packet_counter += 1
        rnd = self._random
        src, dst = rnd.choice(_PEERS)
        if rnd.random() < 0.5:
            src, dst = dst, src
        payload = bytes(rnd.randrange(0, 1200))
        server = rnd.choice(_SERVER_PORTS)
        client = rnd.randrange(49152, 65536)
        proto = rnd.choice([IP_PROTO_TCP, IP_PROTO_TCP, IP_PROTO_UDP, IP_PROTO_ICMP])
        if proto == IP_PROTO_TCP:
            transport = build_tcp_segment(client, server, payload)
        elif proto == IP_PROTO_UDP:
            transport = build_udp_datagram(client, server, payload[:512])
        else:
            transport = struct.pack("!BBHHH", 8, 0, 0, 1, self._packet_counter & 0xFFFF) + payload[:56]
        return build_ipv4_packet(src, dst, proto, transport)

    def start(self, config: CaptureConfig) -> str:
        stop_event = threading.Event()
        session_id = self._open_session(config, stop_event=stop_event)
        session = self._sessions[session_id]

        def packet_generator():
            while not stop_event.is_set():
                try:
                    self._enqueue(session, time.time(), self.generate_packet())
                except Exception:
                    logger.exception("error generating dummy packet")
                    self._count_error(session)
                stop_event.wait(self._interval)

        generator_thread = threading.Thread(target=packet_generator, daemon=True)
        session['generator_thread'] = generator_thread
        generator_thread.start()
        logger.debug("dummy capture %s started on %s", session_id, config.interface)
        return session_id

    def stop(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            session = self._session(session_id)
        session['stop_event'].set()
        session['generator_thread'].join(timeout=1.0)
        return self._close_session(session_id)
