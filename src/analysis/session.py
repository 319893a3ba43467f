"""
Capture session state.

One CaptureSession owns everything that lives for a capture: the record
history, the active filter, the capture flag and the two consumers
(StatRecord and PlotRecord). It is driven from a single thread: the poll
loop calls ingest(), the operator's input calls set_filter()/set_mode().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from filtering import FilterError, RecordFilter, compile_filter
from models.record import Record, local_time

from .stats import StatRecord
from .time_series import PlotRecord

logger = logging.getLogger(__name__)


class Mode(Enum):
    RECORD = "record"
    PLOT = "plot"
    STAT = "stat"


@dataclass
class SessionConfig:
    sample_interval_ms: int = 1000
    """Width of one chart bucket"""
    poll_interval_ms: int = 10
    """How often the capture backend is polled"""
    redraw_interval_ms: int = 500
    """How often the chart is redrawn; independent of sampling"""
    duration_ms: Optional[int] = None
    """Stop capturing after this long (None = until interrupted)"""

    def __post_init__(self):
        if self.sample_interval_ms <= 0:
            raise ValueError("sample_interval_ms must be positive")
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if self.duration_ms is not None and self.duration_ms < 0:
            raise ValueError("duration_ms must not be negative")

    @property
    def sample_interval(self) -> timedelta:
        return timedelta(milliseconds=self.sample_interval_ms)


def _now() -> datetime:
    return datetime.now().astimezone()


class CaptureSession:
    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self.records: List[Record] = []
        self.filter: Optional[RecordFilter] = None
        self.capturing = False
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.mode = Mode.RECORD
        self.stat = StatRecord()
        self.plot = PlotRecord(self.config.sample_interval)

    def start(self, now: Optional[datetime] = None) -> None:
        now = local_time(now) if now is not None else _now()
        self.capturing = True
        self.records.clear()
        self.start_time = now
        self.end_time = None
        self.stat.clear()
        self.plot.clear_with_time(now)
        logger.info("capture started at %s", now.isoformat())

    def stop(self, now: Optional[datetime] = None) -> None:
        now = local_time(now) if now is not None else _now()
        self.capturing = False
        self.end_time = now
        # close idle windows up to the stop time, then the trailing partial one
        self.plot.update_records((), now)
        if self.plot.end_time < now:
            self.plot.end_time = now
        self.plot.commit_rest()
        logger.info("capture stopped at %s, %d records", now.isoformat(), len(self.records))

    def matches(self, record: Record) -> bool:
        return self.filter is None or self.filter(record)

    def ingest(self, record: Record) -> bool:
        """
        Append a live record to the history.

        Returns True when the record passes the active filter (and was
        therefore counted and plotted).
        """
        self.records.append(record)
        if not self.matches(record):
            return False
        self.stat.update(record)
        self.plot.update_records((record,))
        return True

    def filtered_records(self) -> Iterator[Record]:
        if self.filter is None:
            return iter(self.records)
        return self.filter.select(self.records)

    def set_filter(self, text: str) -> Optional[RecordFilter]:
        """
        Install a new filter from operator text and rebuild the aggregates.

        Empty text removes the filter. On a FilterError the previous filter
        stays active and the error propagates for display.
        """
        if not text.strip():
            self.filter = None
        else:
            try:
                self.filter = compile_filter(text)
            except FilterError as e:
                logger.debug("filter %r rejected: %s", text, e)
                raise
        self.rebuild()
        return self.filter

    def set_mode(self, mode: Mode) -> None:
        self.mode = mode
        if mode is Mode.PLOT and not self.capturing:
            self.rebuild_plot()

    def rebuild(self) -> None:
        self.stat.clear()
        self.stat.update_multiple(self.filtered_records())
        self.rebuild_plot()
        logger.debug("rebuilt aggregates: %d packets match", self.stat.network.packets)

    def rebuild_plot(self) -> None:
        end_time = _now() if self.capturing else self.end_time
        self.plot.rebuild(self.filtered_records(), self.start_time, end_time)
        if not self.capturing:
            self.plot.commit_rest()

    def visible_rows(self) -> List[Tuple[str, ...]]:
        return [record.to_row() for record in self.filtered_records()]
