"""
Tests for the bucketed traffic series.
"""
from datetime import datetime, timedelta

import pytest

from analysis.time_series import Bucket, PlotRecord
from models import Record, TCP

T0 = datetime(2024, 5, 1, 10, 0, 0).astimezone()
MS = timedelta(milliseconds=1)


def _at(offset_ms, length=100):
    return Record(time=T0 + offset_ms * MS, length=length, trans_proto=TCP)


def _incremental(records, interval):
    plot = PlotRecord(interval)
    plot.clear_with_time(T0)
    for record in records:
        plot.update_records([record])
    return plot


def test_two_windows_without_gap():
    records = [_at(0, 60), _at(50, 40), _at(250, 1500)]
    plot = PlotRecord.from_records(records, T0, sample_interval=200 * MS)
    assert plot.all_buckets() == [Bucket(2, 100), Bucket(1, 1500)]
    assert plot.start_time == T0
    assert plot.end_time == T0 + 200 * MS

    plot.commit_rest()
    assert plot.buckets == [Bucket(2, 100), Bucket(1, 1500)]
    assert _incremental(records, 200 * MS).all_buckets() == [Bucket(2, 100), Bucket(1, 1500)]


def test_bulk_matches_incremental():
    offsets = [0, 3, 120, 480, 490, 1999, 2000, 2001, 5300, 5301, 9050]
    records = [_at(ms, 40 + i) for i, ms in enumerate(offsets)]
    bulk = PlotRecord.from_records(records, T0, sample_interval=250 * MS)
    incremental = _incremental(records, 250 * MS)
    assert bulk.buckets == incremental.buckets
    assert bulk.current == incremental.current
    assert bulk.end_time == incremental.end_time
    assert sum(b.packets for b in bulk.all_buckets()) == len(records)


def test_bucket_count_never_shrinks():
    plot = PlotRecord(100 * MS)
    plot.clear_with_time(T0)
    seen = 0
    for ms in (0, 10, 150, 151, 700, 701, 702, 1500):
        plot.update_records([_at(ms)])
        assert len(plot.buckets) >= seen
        seen = len(plot.buckets)
    assert seen == 15


def test_large_gap_padded_with_zero_buckets():
    plot = PlotRecord.from_records([_at(0), _at(3_600_050)], T0, sample_interval=100 * MS)
    buckets = plot.all_buckets()
    assert len(buckets) == 36_001
    assert buckets[0] == Bucket(1, 100)
    assert buckets[-1] == Bucket(1, 100)
    assert all(b.is_empty() for b in buckets[1:-1])


def test_commit_rest_is_idempotent():
    plot = PlotRecord.from_records([_at(0), _at(30)], T0, sample_interval=100 * MS)
    assert plot.buckets == []
    plot.commit_rest()
    plot.commit_rest()
    assert plot.buckets == [Bucket(2, 200)]
    assert plot.current.is_empty()
    assert plot.window_start == T0 + 100 * MS


def test_end_time_hint_flushes_to_now():
    plot = PlotRecord(200 * MS)
    plot.clear_with_time(T0)
    plot.update_records([_at(10)], end_time=T0 + 450 * MS)
    assert plot.buckets == [Bucket(1, 100), Bucket()]
    assert plot.current.is_empty()
    assert plot.end_time == T0 + 400 * MS


def test_hint_alone_advances_cursor():
    plot = PlotRecord(200 * MS)
    plot.clear_with_time(T0)
    plot.update_records([], end_time=T0 + 600 * MS)
    assert plot.buckets == [Bucket(), Bucket(), Bucket()]


def test_from_records_keeps_session_end():
    # Everything filtered out but the session ran for two seconds
    end = T0 + 2050 * MS
    plot = PlotRecord.from_records([], T0, end, sample_interval=timedelta(seconds=1))
    assert plot.end_time == end
    assert len(plot.buckets) == 2


def test_empty_update_is_noop():
    plot = PlotRecord()
    plot.update_records([])
    assert plot.start_time is None
    assert plot.end_time is None
    assert plot.series() == []

    plot.clear_with_time(T0)
    plot.update_records(iter(()))
    assert plot.buckets == []
    assert plot.end_time == T0


def test_first_record_anchors_unanchored_series():
    plot = PlotRecord(100 * MS)
    plot.update_records([_at(500), _at(650)])
    assert plot.start_time == T0 + 500 * MS
    assert plot.all_buckets() == [Bucket(1, 100), Bucket(1, 100)]


def test_series_offsets():
    plot = PlotRecord.from_records([_at(0), _at(1200)], T0, sample_interval=500 * MS)
    points = plot.series()
    assert [p.offset for p in points] == [0.0, 0.5, 1.0]
    assert [p.packets for p in points] == [1, 0, 1]


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PlotRecord(timedelta(0))


def test_naive_anchor_and_end_read_as_local():
    naive = datetime(2024, 5, 1, 10, 0, 0)
    plot = PlotRecord.from_records(
        [_at(50), _at(320)], naive, naive + 700 * MS, sample_interval=200 * MS
    )
    assert plot.start_time == T0
    assert plot.start_time.tzinfo is not None
    assert plot.end_time == T0 + 700 * MS
    assert plot.buckets == [Bucket(1, 100), Bucket(1, 100), Bucket()]
