"""
CLI command for live capture with record filtering.
"""
import json
import logging
import time
from typing import Optional

import click

from analysis.session import CaptureSession, Mode, SessionConfig
from capture.dummy_backend import DummyBackend
from capture.icapture_backend import CaptureConfig
from capture.live_source import LiveCaptureSource
from capture.packet_decoder import ip_payload
from capture.scapy_backend import ScapyBackend
from filtering import FilterError
from models.record import COLUMN_TITLES, Record
from utils.logger_config import setup_logger

from .check_filter import explain_error
from .render import hexdump as render_hexdump, render_series, render_stats

logger = logging.getLogger(__name__)


def _create_backend(backend: str):
    backend_class = ScapyBackend if backend == 'scapy' else DummyBackend
    try:
        return backend_class()
    except RuntimeError as e:
        raise click.ClickException(f"Error initializing {backend} backend: {e}")


@click.command()
@click.option('--interface', '-i', required=True, help='Interface to capture from ("list" to show interfaces)')
@click.option('--duration', '-d', type=int, help='Capture time in milliseconds (default: run until Ctrl+C)')
@click.option('--bpf', help='BPF filter passed to the backend (e.g., "tcp port 80")')
@click.option('--filter', '-f', 'filter_expr', help='Record filter, e.g. "dest_port == 443 || app_proto == DNS"')
@click.option('--backend', type=click.Choice(['scapy', 'dummy']), default='dummy', help='Capture backend to use')
@click.option('--sample-ms', type=click.IntRange(min=1), default=1000, show_default=True,
              help='Chart bucket width in milliseconds')
@click.option('--mode', type=click.Choice([m.value for m in Mode]), default=Mode.RECORD.value,
              show_default=True, help='What to print')
@click.option('--format', 'format', type=click.Choice(['table', 'jsonl']), default='table',
              show_default=True, help='Record output format')
@click.option('--hexdump', type=click.Choice(['packet', 'payload']),
              help='In record mode, also dump the whole IPv4 packet or its payload in hex')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def capture(interface: str, duration: Optional[int], bpf: Optional[str], filter_expr: Optional[str],
            backend: str, sample_ms: int, mode: str, format: str, hexdump: Optional[str],
            verbose: bool):
    """
    Capture IPv4 packets and print records, statistics or a traffic series.

    Examples:
      ipstat capture -i dummy0 -d 2000 --mode stat
      ipstat capture -i eth0 --backend scapy -f "trans_proto == TCP && dest_port == 443"
    """
    setup_logger(level=logging.DEBUG if verbose else logging.WARNING)
    capture_backend = _create_backend(backend)

    if interface == 'list':
        click.echo("Available interfaces:")
        for iface in capture_backend.list_interfaces():
            status = "UP" if iface.get('is_up', True) else "DOWN"
            ips = ", ".join(iface.get('ips') or [])
            click.echo(f"  {iface['name']:20} {status:5} [{ips}]")
        return

    config = SessionConfig(sample_interval_ms=sample_ms, duration_ms=duration)
    session = CaptureSession(config)
    session.set_mode(Mode(mode))
    if filter_expr:
        try:
            session.set_filter(filter_expr)
        except FilterError as e:
            raise click.ClickException(f"Invalid filter: {explain_error(filter_expr, e)}")

    source = LiveCaptureSource(capture_backend, CaptureConfig(interface=interface, filter=bpf))
    try:
        session_id = source.start()
    except Exception as e:
        raise click.ClickException(f"Error starting capture: {e}")
    session.start()
    click.echo(f"Capture started on '{interface}' (session: {session_id})", err=True)
    if session.filter is not None:
        click.echo(f"Filter: {session.filter.describe()}", err=True)
    click.echo("Press Ctrl+C to stop\n", err=True)

    if session.mode is Mode.RECORD and format == 'table':
        click.echo("  ".join(COLUMN_TITLES))

    start = time.monotonic()
    last_redraw = start
    poll_seconds = config.poll_interval_ms / 1000.0
    redraw_seconds = config.redraw_interval_ms / 1000.0

    try:
        while True:
            now = time.monotonic()
            if duration is not None and (now - start) * 1000 >= duration:
                break

            for record, data in source.poll_packets():
                if session.ingest(record) and session.mode is Mode.RECORD:
                    _print_record(record, data, format, hexdump)

            if session.mode is Mode.PLOT and now - last_redraw >= redraw_seconds:
                points = session.plot.series()
                if points:
                    last = points[-1]
                    click.echo(f"\r{last.offset:8.2f}s {last.packets:8} pkts {last.bytes:10} bytes",
                               nl=False, err=True)
                last_redraw = now

            time.sleep(poll_seconds)
    except KeyboardInterrupt:
        click.echo("\n\nStopping capture...", err=True)
    finally:
        metadata = source.stop()
        session.stop()

    if session.mode is Mode.STAT:
        click.echo("\n".join(render_stats(session.stat)))
    elif session.mode is Mode.PLOT:
        click.echo("")
        click.echo("\n".join(render_series(session.plot)))

    summary = metadata.get('stats_summary', {})
    click.echo("\n" + "=" * 50, err=True)
    click.echo("CAPTURE SUMMARY", err=True)
    click.echo("=" * 50, err=True)
    click.echo(f"Session ID:    {metadata.get('session_id')}", err=True)
    click.echo(f"Interface:     {metadata.get('interface')}", err=True)
    click.echo(f"Records:       {len(session.records)}", err=True)
    click.echo(f"Matched:       {session.stat.network.packets}", err=True)
    click.echo(f"Packet Drops:  {summary.get('drops_total', 0)}", err=True)
    logger.debug("capture metadata: %s", metadata)


def _print_record(record: Record, data: bytes, format: str, hexdump: Optional[str]) -> None:
    dumped = None
    if hexdump == 'packet':
        dumped = data
    elif hexdump == 'payload':
        dumped = ip_payload(data)

    if format == 'jsonl':
        row = record.to_dict()
        if hexdump:
            row[hexdump] = dumped.hex() if dumped is not None else None
        click.echo(json.dumps(row, ensure_ascii=False))
        return

    click.echo("  ".join(record.to_row()))
    if dumped is not None:
        click.echo(f"  {hexdump}, {len(dumped)} bytes:")
        for line in render_hexdump(dumped):
            click.echo(f"    {line}")
