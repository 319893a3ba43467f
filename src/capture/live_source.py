"""
Live record source: polls a capture backend and decodes what it returns.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from models.record import Record

from .icapture_backend import CaptureConfig, ICaptureBackend
from .packet_decoder import decode_ipv4

logger = logging.getLogger(__name__)


class LiveCaptureSource:
    def __init__(self, backend: ICaptureBackend, config: CaptureConfig, batch_size: int = 100):
        self.backend = backend
        self.config = config
        self.batch_size = batch_size
        self.session_id: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.session_id is not None

    def start(self) -> str:
        if self.session_id is not None:
            raise RuntimeError("capture already running")
        self.session_id = self.backend.start(self.config)
        return self.session_id

    def poll(self) -> List[Record]:
        """Decode whatever the backend has queued since the last poll."""
        return [record for record, _ in self.poll_packets()]

    def poll_packets(self) -> List[Tuple[Record, bytes]]:
        """Like poll(), keeping the raw IPv4 bytes next to each record."""
        if self.session_id is None:
            return []
        decoded = []
        for packet in self.backend.get_packets(self.session_id, count=self.batch_size):
            timestamp = datetime.fromtimestamp(packet["ts"]).astimezone()
            record = decode_ipv4(packet["data"], timestamp)
            if record is not None:
                decoded.append((record, packet["data"]))
        return decoded

    def stats(self) -> Dict[str, Any]:
        if self.session_id is None:
            return {}
        return self.backend.get_stats(self.session_id)

    def stop(self) -> Dict[str, Any]:
        if self.session_id is None:
            return {}
        session_id, self.session_id = self.session_id, None
        metadata = self.backend.stop(session_id)
        logger.debug("capture %s stopped", session_id)
        return metadata
