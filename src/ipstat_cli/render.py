"""
Plain-text rendering of session output.
"""
from typing import List, Sequence

from analysis.stats import (
    APPLICATION_COLUMNS, NETWORK_COLUMNS, TRANSPORT_COLUMNS, StatRecord,
)
from analysis.time_series import PlotRecord

BAR_WIDTH = 40


def format_table(titles: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    """Left-aligned columns sized to their widest cell."""
    widths = [_display_width(t) for t in titles]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], _display_width(cell))
    lines = [_format_row(titles, widths), "-" * (sum(widths) + 2 * (len(widths) - 1))]
    lines.extend(_format_row(row, widths) for row in rows)
    return lines


def _format_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    out = []
    for cell, width in zip(cells, widths):
        out.append(cell + " " * (width - _display_width(cell)))
    return "  ".join(out).rstrip()


def _display_width(text: str) -> int:
    # CJK characters take two terminal cells
    return sum(2 if ord(ch) > 0x2E7F else 1 for ch in text)


def render_stats(stat: StatRecord) -> List[str]:
    lines = ["[网络层]"]
    lines += format_table(NETWORK_COLUMNS, [stat.network.to_row()])
    lines += ["", "[传输层]"]
    lines += format_table(TRANSPORT_COLUMNS, stat.transport_rows())
    lines += ["", "[应用层]"]
    lines += format_table(APPLICATION_COLUMNS, stat.application_rows())
    return lines


def render_series(plot: PlotRecord) -> List[str]:
    points = plot.series()
    if not points:
        return ["(no data)"]
    peak = max(p.bytes for p in points) or 1
    lines = [f"{'t(s)':>8}  {'packets':>8}  {'bytes':>10}"]
    for point in points:
        bar = "#" * round(BAR_WIDTH * point.bytes / peak)
        lines.append(f"{point.offset:8.2f}  {point.packets:8}  {point.bytes:10}  {bar}")
    return lines


def hexdump(data: bytes) -> List[str]:
    """16 bytes per line, split into two groups of eight."""
    lines = []
    for start in range(0, len(data), 16):
        row = data[start:start + 16]
        left = " ".join(f"{b:02x}" for b in row[:8])
        right = " ".join(f"{b:02x}" for b in row[8:])
        lines.append(f"{left}  {right}".rstrip())
    return lines
