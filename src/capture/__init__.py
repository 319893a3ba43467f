"""
Live packet capture subsystem.
"""

from .icapture_backend import ICaptureBackend, CaptureConfig, QueuedCaptureBackend
from .scapy_backend import ScapyBackend
from .dummy_backend import DummyBackend
from .live_source import LiveCaptureSource
from .packet_decoder import decode_ipv4

__all__ = [
    'ICaptureBackend',
    'CaptureConfig',
    'QueuedCaptureBackend',
    'ScapyBackend',
    'DummyBackend',
    'LiveCaptureSource',
    'decode_ipv4',
]
