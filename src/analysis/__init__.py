"""
Aggregation over record streams: totals, time series and the session that
drives them.
"""

from .stats import StatRecord, NetworkStat, TransportStat, ApplicationStat
from .time_series import PlotRecord, Bucket, SeriesPoint
from .session import CaptureSession, SessionConfig, Mode

__all__ = [
    'StatRecord',
    'NetworkStat',
    'TransportStat',
    'ApplicationStat',
    'PlotRecord',
    'Bucket',
    'SeriesPoint',
    'CaptureSession',
    'SessionConfig',
    'Mode',
]
