"""
Capture backend interface.

A backend delivers raw IPv4 packets (IP header first, no link layer) as
dicts: {'ts': float epoch seconds, 'data': bytes, 'wirelen': int}.
"""
import itertools
import queue
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class CaptureConfig:
    interface: str
    filter: Optional[str] = None
    """BPF filter applied by the backend, before records are built"""
    buffer_size: int = 10000
    promisc: bool = True
    monitor: bool = False


class ICaptureBackend(ABC):
    @abstractmethod
    def list_interfaces(self) -> List[Dict]:
        """Describe the interfaces this backend can capture on."""

    @abstractmethod
    def start(self, config: CaptureConfig) -> str:
        """Start capturing and return a session id."""

    @abstractmethod
    def stop(self, session_id: str) -> Dict[str, Any]:
        """Stop capturing and return session metadata."""

    @abstractmethod
    def get_stats(self, session_id: str) -> Dict[str, Any]:
        """Counters for a running session."""

    @abstractmethod
    def get_packets(self, session_id: str, count: int = 100) -> List[Dict]:
        """Drain up to ``count`` queued packets without blocking."""


class QueuedCaptureBackend(ICaptureBackend):
    """
    Session table shared by the threaded backends.

    Each session owns a bounded queue filled from a producer thread and
    drained by get_packets(); a full queue counts a drop instead of blocking
    the producer.
    """

    backend_name = "queued"

    def __init__(self):
        self._sessions: Dict[str, Dict] = {}
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

    def _open_session(self, config: CaptureConfig, **extra) -> str:
        with self._lock:
            session_id = f"{self.backend_name}_{int(time.time())}_{next(self._ids)}"
            self._sessions[session_id] = {
                'queue': queue.Queue(maxsize=config.buffer_size),
                'config': config,
                'stats': {
                    'packets_total': 0,
                    'bytes_total': 0,
                    'drops_total': 0,
                    'errors_total': 0,
                    'start_time': time.time(),
                },
                'stats_lock': threading.Lock(),
                **extra,
            }
            return session_id

    @staticmethod
    def _enqueue(session: Dict, ts: float, data: bytes) -> None:
        with session['stats_lock']:
            try:
                session['queue'].put_nowait({'ts': ts, 'data': data, 'wirelen': len(data)})
                session['stats']['packets_total'] += 1
                session['stats']['bytes_total'] += len(data)
            except queue.Full:
                session['stats']['drops_total'] += 1

    @staticmethod
    def _count_error(session: Dict) -> None:
        with session['stats_lock']:
            session['stats']['errors_total'] += 1

    def _close_session(self, session_id: str) -> Dict[str, Any]:
        """Remove the session and describe how it went."""
        with self._lock:
            session = self._session(session_id)
            summary = self._snapshot(session)
            config = session['config']
            del self._sessions[session_id]
        return {
            'session_id': session_id,
            'backend': self.backend_name,
            'interface': config.interface,
            'start_ts': summary['start_time'],
            'end_ts': time.time(),
            'config': {
                'interface': config.interface,
                'buffer_size': config.buffer_size,
                'promisc': config.promisc,
                'filter': config.filter,
            },
            'stats_summary': summary,
        }

    @staticmethod
    def _snapshot(session: Dict) -> Dict[str, Any]:
        with session['stats_lock']:
            stats = session['stats'].copy()
        elapsed = max(time.time() - stats['start_time'], 1e-6)
        stats['queue_depth'] = session['queue'].qsize()
        stats['packets_per_sec'] = stats['packets_total'] / elapsed
        stats['bytes_per_sec'] = stats['bytes_total'] / elapsed
        return stats

    def get_stats(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            return self._snapshot(self._session(session_id))

    def get_packets(self, session_id: str, count: int = 100) -> List[Dict]:
        with self._lock:
            packet_queue = self._session(session_id)['queue']
        packets = []
        for _ in range(count):
            try:
                packets.append(packet_queue.get_nowait())
            except queue.Empty:
                break
        return packets

    def _session(self, session_id: str) -> Dict:
        if session_id not in self._sessions:
            raise ValueError(f"Session {session_id} not found")
        return self._sessions[session_id]
