"""
Capture session: filter changes drive the stat and plot rebuilds.
"""
import unittest
from datetime import datetime, timedelta
from ipaddress import IPv4Address

from analysis.session import CaptureSession, Mode, SessionConfig
from filtering import FilterSyntaxError, InvalidField
from models import AppProtocol, Record, ICMP, TCP

T0 = datetime(2024, 5, 1, 10, 0, 0).astimezone()


def _packet(offset_ms, dest_port=None, proto=TCP, length=100):
    ported = dest_port is not None
    return Record(
        time=T0 + timedelta(milliseconds=offset_ms),
        length=length,
        trans_proto=proto,
        src_ip=IPv4Address("172.16.0.5"),
        src_port=51000 if ported else None,
        dest_ip=IPv4Address("172.16.0.1"),
        dest_port=dest_port,
        ip_payload_len=length - 20,
        trans_payload_len=length - 40 if ported else None,
        app_proto=AppProtocol.from_ports(51000, dest_port) if ported else AppProtocol.UNKNOWN,
    )


class CaptureSessionTests(unittest.TestCase):
    def setUp(self):
        self.session = CaptureSession(SessionConfig(sample_interval_ms=200))
        self.session.start(T0)
        for record in (_packet(10, 80), _packet(20, 22), _packet(30, proto=ICMP)):
            self.session.ingest(record)
        self.session.stop(T0 + timedelta(milliseconds=900))

    def test_unfiltered_counts_everything(self):
        self.assertEqual(self.session.stat.network.packets, 3)
        self.assertEqual(len(self.session.visible_rows()), 3)

    def test_filter_rebuilds_stats(self):
        self.session.set_filter("(dest_port == 80) || (dest_port == 443)")
        self.assertEqual(self.session.stat.network.packets, 1)
        self.assertEqual(list(self.session.stat.application), ["HTTP"])
        self.assertEqual(len(self.session.visible_rows()), 1)
        self.assertEqual(self.session.visible_rows()[0][4], "80")

    def test_filter_rebuilds_plot_to_session_end(self):
        self.session.set_filter("dest_port == 22")
        plot = self.session.plot
        self.assertEqual(plot.start_time, T0)
        self.assertEqual(plot.end_time, T0 + timedelta(milliseconds=900))
        self.assertEqual(sum(b.packets for b in plot.all_buckets()), 1)
        self.assertEqual(len(plot.buckets), 4)

    def test_rejected_filter_keeps_previous(self):
        active = self.session.set_filter("trans_proto == ICMP")
        with self.assertRaises(FilterSyntaxError):
            self.session.set_filter("dest_port ==")
        with self.assertRaises(InvalidField):
            self.session.set_filter("port == 80")
        self.assertIs(self.session.filter, active)
        self.assertEqual(self.session.stat.network.packets, 1)

    def test_blank_filter_clears(self):
        self.session.set_filter("dest_port == 80")
        self.assertIsNone(self.session.set_filter("   "))
        self.assertEqual(self.session.stat.network.packets, 3)

    def test_stop_closes_windows_up_to_stop_time(self):
        plot = self.session.plot
        self.assertEqual(len(plot.buckets), 4)
        self.assertEqual(plot.buckets[0].packets, 3)
        self.assertTrue(plot.current.is_empty())
        self.assertEqual(plot.end_time, T0 + timedelta(milliseconds=900))

    def test_live_plot_matches_rebuild_after_stop(self):
        live = list(self.session.plot.buckets)
        live_end = self.session.plot.end_time
        self.session.rebuild()
        self.assertEqual(self.session.plot.buckets, live)
        self.assertEqual(self.session.plot.end_time, live_end)

    def test_plot_mode_rebuilds_when_idle(self):
        self.session.plot.clear()
        self.session.set_mode(Mode.PLOT)
        self.assertEqual(self.session.mode, Mode.PLOT)
        self.assertEqual(self.session.plot.buckets[0].packets, 3)


class LiveIngestTests(unittest.TestCase):
    def test_ingest_reports_filter_match(self):
        session = CaptureSession()
        session.set_filter("dest_port == 443")
        session.start(T0)
        self.assertTrue(session.ingest(_packet(5, 443)))
        self.assertFalse(session.ingest(_packet(6, 80)))
        self.assertEqual(len(session.records), 2)
        self.assertEqual(session.stat.network.packets, 1)
        self.assertEqual(session.plot.current.packets, 1)

    def test_stop_commits_partial_window(self):
        session = CaptureSession(SessionConfig(sample_interval_ms=200))
        session.start(T0)
        session.ingest(_packet(10, 443))
        session.stop(T0 + timedelta(milliseconds=100))
        self.assertEqual([b.packets for b in session.plot.buckets], [1])
        self.assertTrue(session.plot.current.is_empty())

    def test_idle_tail_matches_rebuild(self):
        session = CaptureSession()
        session.start(T0)
        session.ingest(_packet(100, 443))
        session.stop(T0 + timedelta(seconds=5))
        live = list(session.plot.buckets)
        session.rebuild()
        self.assertEqual(len(live), 5)
        self.assertEqual(session.plot.buckets, live)

    def test_naive_clock_values_are_local(self):
        naive = datetime(2024, 5, 1, 10, 0, 0)
        session = CaptureSession(SessionConfig(sample_interval_ms=200))
        session.start(naive)
        self.assertTrue(session.ingest(_packet(50, 80)))
        session.stop(naive + timedelta(milliseconds=500))
        self.assertIsNotNone(session.start_time.tzinfo)
        self.assertEqual(session.start_time, T0)
        self.assertEqual(sum(b.packets for b in session.plot.buckets), 1)

    def test_start_resets_history(self):
        session = CaptureSession()
        session.start(T0)
        session.ingest(_packet(5, 443))
        session.stop(T0 + timedelta(seconds=1))
        session.start(T0 + timedelta(seconds=5))
        self.assertEqual(session.records, [])
        self.assertEqual(session.stat.network.packets, 0)
        self.assertEqual(session.plot.buckets, [])

    def test_config_validation(self):
        with self.assertRaises(ValueError):
            SessionConfig(sample_interval_ms=0)
        with self.assertRaises(ValueError):
            SessionConfig(duration_ms=-1)
        self.assertEqual(SessionConfig(sample_interval_ms=250).sample_interval,
                         timedelta(milliseconds=250))


if __name__ == "__main__":
    unittest.main()
