"""
Record data models.
"""

from .record import Record, COLUMN_TITLES, TIME_FORMAT, U16_MAX, saturate_u16
from .protocols import AppProtocol, TransProtocol, same_protocol, TCP, UDP, ICMP

__all__ = [
    'Record',
    'COLUMN_TITLES',
    'TIME_FORMAT',
    'U16_MAX',
    'saturate_u16',
    'AppProtocol',
    'TransProtocol',
    'same_protocol',
    'TCP',
    'UDP',
    'ICMP',
]
