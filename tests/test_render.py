# tests/test_render.py
from ipaddress import ip_address
import io
import json

from rich.console import Console

from pingtrace.events import ROUND_DONE, RUN_DONE
from pingtrace.models import HopRecord, HopTable, LimitExceeded, Reply, Timeout
from pingtrace.render import (
    HOST_WIDTH, EventRenderer, LiveRenderer, ReportRenderer,
    format_header, format_hop, format_host, hop_cells, render_lines,
)

A = ip_address("10.0.0.1")
TARGET = ip_address("203.0.113.50")


def _console():
    return Console(file=io.StringIO(), width=200, highlight=False)


def _table():
    table = HopTable(5)
    table.merge([(1, LimitExceeded(A, 10.0)), (2, Timeout()), (3, Reply(TARGET, 20.0))])
    table.merge([(1, LimitExceeded(A, 20.0)), (2, Timeout()), (3, Reply(TARGET, 22.0))])
    return table


def test_host_placeholder_when_nothing_answered():
    assert format_host(HopRecord(hop_limit=1)) == "???"


def test_host_with_and_without_names():
    hop = HopRecord(hop_limit=1, address=A, hostname="gw.example.net")
    assert format_host(hop) == "gw.example.net (10.0.0.1)"
    assert format_host(hop, resolve_names=False) == "10.0.0.1"
    assert format_host(HopRecord(hop_limit=1, address=A)) == "10.0.0.1"


def test_host_truncated_to_fixed_width():
    hop = HopRecord(hop_limit=1, address=A, hostname="x" * 80)
    assert len(format_host(hop)) == HOST_WIDTH


def test_cells_for_responding_hop():
    hop = HopRecord(hop_limit=1)
    hop.record_response(A, 10.0)
    hop.record_response(A, 20.0)
    assert hop_cells(hop) == (
        "1.", "10.0.0.1", "0.0%", "2", "20.0", "15.0", "10.0", "20.0", "5.0",
    )


def test_cells_for_silent_hop():
    hop = HopRecord(hop_limit=2)
    hop.record_loss()
    assert hop_cells(hop) == (
        "2.", "???", "100.0%", "1", "---", "---", "---", "---", "---",
    )


def test_stddev_placeholder_with_single_sample():
    hop = HopRecord(hop_limit=1)
    hop.record_response(A, 7.0)
    cells = hop_cells(hop)
    assert cells[5] == "7.0"
    assert cells[-1] == "---"


def test_row_and_header_line_up():
    hop = HopRecord(hop_limit=12, address=A)
    hop.record_response(A, 1.0)
    row = format_hop(hop)
    assert row.startswith(" 12. 10.0.0.1")
    assert len(row) == len(format_header())


def test_render_lines_counts_rows():
    snap = _table().snapshot(horizon=5, cycle=2)
    lines = render_lines(snap, snap.display_count, "example.com", TARGET)
    assert lines[0] == "pingtrace to example.com (203.0.113.50)"
    assert len(lines) == 2 + 3


def test_report_prints_final_count_rows():
    console = _console()
    snap = _table().snapshot(horizon=5, cycle=2)
    ReportRenderer("example.com", TARGET, console=console).final(snap)
    out = console.file.getvalue().splitlines()
    assert out[0] == "pingtrace to example.com (203.0.113.50)"
    assert len(out) == 2 + 3
    assert out[4].lstrip().startswith("3. 203.0.113.50")


def test_report_without_target_uses_last_hop_with_traffic():
    table = HopTable(30)
    for _ in range(2):
        table.merge([(n, Timeout()) for n in range(1, 6)])
    console = _console()
    ReportRenderer("example.com", TARGET, console=console).final(
        table.snapshot(horizon=30, cycle=2))
    assert len(console.file.getvalue().splitlines()) == 2 + 5


def test_report_json_document():
    console = _console()
    snap = _table().snapshot(horizon=5, cycle=2)
    ReportRenderer("example.com", TARGET, json_output=True, console=console).final(snap)
    doc = json.loads(console.file.getvalue())
    assert doc["target_hop"] == 3
    assert doc["cycles"] == 2
    assert [h["hop"] for h in doc["hops"]] == [1, 2, 3]
    assert doc["hops"][0]["avg_ms"] == 15.0
    assert doc["hops"][1]["loss_percent"] == 100.0


def test_live_renderer_redraws_each_round_then_reports():
    console = _console()
    table = _table()
    live = LiveRenderer("example.com", TARGET, console=console)
    for cycle in range(1, 4):
        live.round_complete(table.snapshot(horizon=5, cycle=cycle))
    live.final(table.snapshot(horizon=5, cycle=3))

    assert live.redraws == 3
    out = console.file.getvalue()
    assert "pingtrace to example.com (203.0.113.50)" in out
    assert "Loss%" in out


def test_event_renderer_forwards_snapshots():
    events = []
    snap = _table().snapshot(horizon=5, cycle=1)
    renderer = EventRenderer(events.append)
    renderer.round_complete(snap)
    renderer.final(snap)
    assert [e.event for e in events] == [ROUND_DONE, RUN_DONE]
    assert events[0].snapshot is snap
    assert events[1].cycle == 1
