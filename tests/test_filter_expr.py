import unittest
from datetime import datetime
from unittest import mock
from ipaddress import IPv4Address

from filtering import (
    And,
    Comparison,
    Field,
    FilterError,
    FilterSyntaxError,
    InvalidField,
    InvalidLiteral,
    InvalidOperator,
    Operator,
    Or,
    UnsupportedOperator,
    compile_filter,
    parse_filter,
)
from filtering import fields as field_rules
from models import AppProtocol, Record, TransProtocol, TCP, UDP, ICMP


def _record(**overrides):
    fields = dict(
        time=datetime(2024, 5, 1, 12, 30, 15, 250000),
        length=1500,
        trans_proto=TCP,
        src_ip=IPv4Address("10.0.0.1"),
        src_port=52000,
        dest_ip=IPv4Address("10.0.0.2"),
        dest_port=443,
        ip_payload_len=1480,
        trans_payload_len=1460,
        app_proto=AppProtocol.HTTPS,
    )
    fields.update(overrides)
    return Record(**fields)


class FilterExprTests(unittest.TestCase):
    def setUp(self):
        self.record = _record()

    def test_src_port_equality(self):
        self.assertEqual(
            parse_filter("src_port == 80"),
            Comparison(Field.SRC_PORT, Operator.EQ, 80),
        )

    def test_localized_alias(self):
        self.assertEqual(parse_filter("源端口 == 80"), parse_filter("src_port == 80"))
        self.assertEqual(parse_filter("传输层协议==UDP"), parse_filter("trans_protocol == UDP"))

    def test_parens_are_transparent(self):
        self.assertEqual(parse_filter("(src_port == 80)"), parse_filter("src_port == 80"))

    def test_whitespace_insignificant(self):
        self.assertEqual(
            parse_filter("  (  dest_port==443 )&&!( len<100)  "),
            parse_filter("(dest_port == 443) && !(len < 100)"),
        )

    def test_and_binds_tighter_than_or(self):
        pred = parse_filter("len >= 1000 || app_proto == DNS && dest_port == 53")
        self.assertIsInstance(pred, Or)
        self.assertIsInstance(pred.right, And)

    def test_chains_fold_left(self):
        pred = parse_filter("len > 1 && len > 2 && len > 3")
        self.assertEqual(pred.right, Comparison(Field.LEN, Operator.GT, 3))
        self.assertIsInstance(pred.left, And)

    def test_tcp_and_port(self):
        pred = compile_filter("(trans_proto == TCP) && (dest_port == 443)")
        self.assertTrue(pred(self.record))
        self.assertFalse(pred(_record(dest_port=80)))

    def test_length_or_dns(self):
        pred = compile_filter("len >= 1000 || app_proto == DNS")
        self.assertTrue(pred(self.record))
        self.assertTrue(pred(_record(length=80, app_proto=AppProtocol.DNS, trans_proto=UDP)))
        self.assertFalse(pred(_record(length=80)))

    def test_not(self):
        pred = compile_filter("!(src_ip == 10.0.0.1)")
        self.assertFalse(pred(self.record))
        self.assertTrue(pred(_record(src_ip=IPv4Address("10.0.0.9"))))

    def test_time_literals(self):
        self.assertTrue(compile_filter("time == 2024-05-01 12:30:15.25")(self.record))
        self.assertTrue(compile_filter("time > 2024-05-01 12:30:15")(self.record))
        self.assertTrue(compile_filter("时间 < 2024-05-02")(self.record))
        self.assertFalse(compile_filter("time <= 2024-05-01")(self.record))

    def test_length_literal_saturates(self):
        self.assertEqual(
            parse_filter("len == 70000"),
            Comparison(Field.LEN, Operator.EQ, 65535),
        )
        self.assertTrue(compile_filter("len == 70000")(_record(length=100000)))

    def test_unknown_protocol_matches_any_code(self):
        pred = compile_filter("trans_proto == Unknown")
        self.assertTrue(pred(_record(trans_proto=TransProtocol(143))))
        self.assertTrue(pred(_record(trans_proto=TransProtocol(200))))
        self.assertFalse(pred(_record(trans_proto=ICMP)))
        self.assertTrue(compile_filter("trans_proto != Unknown")(self.record))

    def test_absent_fields(self):
        icmp = _record(trans_proto=ICMP, src_port=None, dest_port=None,
                       trans_payload_len=None, app_proto=AppProtocol.UNKNOWN)
        self.assertFalse(compile_filter("dest_port == 80")(icmp))
        self.assertTrue(compile_filter("dest_port != 80")(icmp))
        self.assertFalse(compile_filter("dest_port > 80")(icmp))
        self.assertTrue(compile_filter("dest_port < 80")(icmp))

    def test_display_names_reparse(self):
        for proto in (TCP, UDP, ICMP, TransProtocol(41), TransProtocol(58)):
            pred = parse_filter(f"trans_proto == {proto}")
            self.assertEqual(pred.literal, proto)
        for app in AppProtocol:
            self.assertEqual(parse_filter(f"app_proto == {app}").literal, app)

    def test_describe_round_trips(self):
        text = "(dest_port == 80) || !(time >= 2024-05-01 00:00:00.5 && trans_proto == Unknown)"
        described = compile_filter(text).describe()
        self.assertEqual(parse_filter(described), parse_filter(text))


class FilterErrorTests(unittest.TestCase):
    def test_unknown_field(self):
        with self.assertRaises(InvalidField) as ctx:
            parse_filter("sport == 80")
        self.assertEqual(ctx.exception.text, "sport")
        self.assertIn("sport", ctx.exception.message)

    def test_invalid_operator(self):
        with self.assertRaises(InvalidOperator) as ctx:
            parse_filter("src_port = 80")
        self.assertTrue(ctx.exception.text.startswith("="))

    def test_unsupported_operator(self):
        with self.assertRaises(UnsupportedOperator) as ctx:
            parse_filter("src_ip > 10.0.0.1")
        self.assertEqual(ctx.exception.field, "src_ip")
        self.assertEqual(ctx.exception.operator, ">")
        for text in ("trans_proto < TCP", "app_proto >= DNS", "目的IP <= 1.2.3.4"):
            with self.assertRaises(UnsupportedOperator):
                parse_filter(text)

    def test_invalid_literals(self):
        for text, literal in [
            ("src_port == 70000", "70000"),
            ("src_port == http", "http"),
            ("src_ip == 10.0.0", "10.0.0"),
            ("src_ip == 10.0.0.256", "10.0.0.256"),
            ("trans_proto == tcp", "tcp"),
            ("app_proto == https", "https"),
            ("time == 2024-13-01", "2024-13-01"),
            ("time == 0001-01-01", "0001-01-01"),
            ("len == 12ab", "12ab"),
        ]:
            with self.assertRaises(InvalidLiteral) as ctx:
                parse_filter(text)
            self.assertEqual(ctx.exception.text, literal)

    def test_time_out_of_range_after_zone_shift(self):
        class _Overflowing(datetime):
            def astimezone(self, tz=None):
                raise OverflowError("date value out of range")

        with mock.patch.object(field_rules, "datetime", _Overflowing):
            with self.assertRaises(InvalidLiteral) as ctx:
                parse_filter("time == 9999-12-31 23:59:59")
        self.assertEqual(ctx.exception.text, "9999-12-31 23:59:59")

    def test_boundary_times_never_escape_as_other_errors(self):
        for text in ("time == 0001-01-01", "time == 9999-12-31 23:59:59", "time < 9999-12-31"):
            try:
                parse_filter(text)
            except FilterError:
                pass

    def test_syntax_error_position(self):
        with self.assertRaises(FilterSyntaxError) as ctx:
            parse_filter("src_port == 80 extra")
        self.assertEqual(ctx.exception.position, 15)
        with self.assertRaises(FilterSyntaxError) as ctx:
            parse_filter("(src_port == 80")
        self.assertEqual(ctx.exception.position, 15)

    def test_structural_failures(self):
        for text in ("", "   ", "(src_port == 80", "src_port == 80)", "src_port == 80 extra",
                     "src_port ==", "!src_port == 80", "src_port == 80 &&", "80 == src_port",
                     "src_port == 80 & dest_port == 80"):
            with self.assertRaises(FilterSyntaxError):
                parse_filter(text)


if __name__ == "__main__":
    unittest.main()
