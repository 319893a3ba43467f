import logging
from typing import Any, Dict, List

from .icapture_backend import CaptureConfig, QueuedCaptureBackend

try:
    from scapy.all import AsyncSniffer, IP, get_if_addr, get_if_list
    SCAPY_AVAILABLE = True
except ImportError:
    SCAPY_AVAILABLE = False

logger = logging.getLogger(__name__)


def bpf_for(config: CaptureConfig) -> str:
    """Kernel filter: IPv4 only, narrowed by the user's BPF if given."""
    return "ip" if not config.filter else f"ip and ({config.filter})"


class ScapyBackend(QueuedCaptureBackend):
    """Scapy-based capture backend that forwards the IPv4 layer of each packet."""

    backend_name = "scapy"

    def __init__(self):
        if not SCAPY_AVAILABLE:
            raise RuntimeError("Scapy not available. Install with: pip install scapy")
        super().__init__()

    def list_interfaces(self) -> List[Dict]:
        interfaces = []
        for iface_name in get_if_list():
            try:
                addr = get_if_addr(iface_name)
            except (OSError, ValueError) as e:
                logger.debug("no address for %s: %s", iface_name, e)
                addr = None
            interfaces.append({
                'id': iface_name,
                'name': iface_name,
                'description': iface_name,
                'is_up': True,  # Scapy doesn't easily check this
                'ips': [addr] if addr and addr != "0.0.0.0" else [],
            })
        return interfaces

    def start(self, config: CaptureConfig) -> str:
        session_id = self._open_session(config)
        session = self._sessions[session_id]
        session['stats']['non_ip_total'] = 0

        bpf = bpf_for(config)
        sniffer = AsyncSniffer(
            iface=config.interface,
            prn=lambda packet: self._on_packet(session, packet),
            filter=bpf,
            store=False,
            promisc=config.promisc,
            monitor=config.monitor,
        )
        session['sniffer'] = sniffer
        try:
            sniffer.start()
        except Exception:
            self._close_session(session_id)
            raise
        logger.info("scapy capture %s started on %s (bpf: %s)", session_id, config.interface, bpf)
        return session_id

    def stop(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            session = self._session(session_id)
        session['sniffer'].stop()
        return self._close_session(session_id)

    def _on_packet(self, session: Dict, packet) -> None:
        """Sniffer callback; runs on scapy's capture thread."""
        try:
            if IP not in packet:
                with session['stats_lock']:
                    session['stats']['non_ip_total'] += 1
                return
            self._enqueue(session, float(packet.time), bytes(packet[IP]))
        except Exception:
            # an exception escaping here would end the sniffer thread
            logger.exception("error in packet callback")
            self._count_error(session)
