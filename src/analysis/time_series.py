"""Fixed-width time buckets for the live traffic chart."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from itertools import chain
from typing import Iterable, List, Optional

from models.record import Record, local_time


@dataclass
class Bucket:
    packets: int = 0
    bytes: int = 0

    def is_empty(self) -> bool:
        return self.packets == 0 and self.bytes == 0


@dataclass(frozen=True)
class SeriesPoint:
    offset: float
    """Seconds from the series origin to the start of the bucket"""
    packets: int
    bytes: int


class PlotRecord:
    """
    Time-bucketed packet/byte totals.

    ``buckets`` holds closed windows in order; ``current`` is the open
    window starting at the window cursor. Together they cover every window
    from the origin to the cursor, with explicit zero buckets for idle
    windows. Records must arrive in chronological order; naive datetimes
    passed as anchors or end times are read as local time, like Record.time.
    """

    def __init__(self, sample_interval: timedelta = timedelta(seconds=1)):
        if sample_interval <= timedelta(0):
            raise ValueError("sample interval must be positive")
        self.sample_interval = sample_interval
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.buckets: List[Bucket] = []
        self.current = Bucket()
        self._origin: Optional[datetime] = None
        self._window_start: Optional[datetime] = None

    @property
    def window_start(self) -> Optional[datetime]:
        return self._window_start

    def clear(self) -> None:
        self.start_time = None
        self.end_time = None
        self.buckets = []
        self.current = Bucket()
        self._origin = None
        self._window_start = None

    def clear_with_time(self, time: datetime) -> None:
        time = local_time(time)
        self.clear()
        self.start_time = time
        self.end_time = time
        self._anchor(time)

    def _anchor(self, time: datetime) -> None:
        self._origin = time
        self._window_start = time
        if self.start_time is None or time < self.start_time:
            self.start_time = time

    def update_records(self, records: Iterable[Record], end_time: Optional[datetime] = None) -> None:
        """
        Fold records into the series.

        ``end_time`` moves the cursor up to that instant after the records,
        so a replay reaches "now" even when the last record is older.
        """
        records = iter(records)
        first = next(records, None)
        if first is None and end_time is None:
            return
        if end_time is not None:
            end_time = local_time(end_time)
        if self._window_start is None:
            self._anchor(first.time if first is not None else end_time)
        if first is not None:
            for record in chain((first,), records):
                self._advance_to(record.time)
                self.current.packets += 1
                self.current.bytes += record.length
        if end_time is not None:
            self._advance_to(end_time)
        self.end_time = self._window_start

    def _advance_to(self, time: datetime) -> None:
        """Close windows until ``time`` falls inside the open one."""
        interval = self.sample_interval
        if time < self._window_start + interval:
            return
        self.buckets.append(self.current)
        self.current = Bucket()
        self._window_start += interval
        while time >= self._window_start + interval:
            self.buckets.append(Bucket())
            self._window_start += interval

    def commit_rest(self) -> None:
        """Close the open window if it holds anything."""
        if self.current.is_empty():
            return
        self.buckets.append(self.current)
        self.current = Bucket()
        self._window_start += self.sample_interval

    @classmethod
    def from_records(cls,
                     records: Iterable[Record],
                     start_time: Optional[datetime] = None,
                     end_time: Optional[datetime] = None,
                     sample_interval: timedelta = timedelta(seconds=1)) -> "PlotRecord":
        plot = cls(sample_interval)
        plot.rebuild(records, start_time, end_time)
        return plot

    def rebuild(self,
                records: Iterable[Record],
                start_time: Optional[datetime] = None,
                end_time: Optional[datetime] = None) -> None:
        """Replace the series with a replay of ``records``."""
        if end_time is not None:
            end_time = local_time(end_time)
        if start_time is not None:
            self.clear_with_time(start_time)
        else:
            self.clear()
        self.update_records(records, end_time)
        if end_time is not None and (self.end_time is None or self.end_time < end_time):
            self.end_time = end_time

    def all_buckets(self) -> List[Bucket]:
        """Closed buckets plus the open one when it holds anything."""
        if self.current.is_empty():
            return list(self.buckets)
        return self.buckets + [self.current]

    def series(self) -> List[SeriesPoint]:
        if self._origin is None:
            return []
        step = self.sample_interval.total_seconds()
        return [
            SeriesPoint(i * step, bucket.packets, bucket.bytes)
            for i, bucket in enumerate(self.all_buckets())
        ]
