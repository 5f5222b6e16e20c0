"""
Textual TUI for pingtrace: live per-hop statistics.

The scheduler runs in a plain thread and emits RoundEvents into a queue;
an async worker polls the queue and refreshes the hop table.

    app = PingTraceApp(target, address, config, prober)
    app.run()
    app.join()                   # scheduler thread, after the app closed
"""

from __future__ import annotations

import asyncio
import queue
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Static

from .events import RoundEvent, ROUND_DONE, RUN_DONE
from .models import IPAddress, TableSnapshot
from .prober import Prober
from .render import EventRenderer, format_title, hop_cells
from .resolver import ReverseResolver
from .scheduler import CancelToken, CycleScheduler, SchedulerConfig

CSS_PATH = Path(__file__).parent / "theme.tcss"

COLUMNS = ("", "Host", "Loss%", "Snt", "Last", "Avg", "Best", "Wrst", "StDev")


class TitleBar(Static):
    pass

class StatusBar(Static):
    pass


class PingTraceApp(App):
    """pingtrace TUI: the live table, in a real terminal UI."""

    CSS_PATH = CSS_PATH
    TITLE = "pingtrace"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        target: str,
        address: IPAddress,
        config: SchedulerConfig,
        prober: Prober,
        token: Optional[CancelToken] = None,
        reverse_resolver: Optional[ReverseResolver] = None,
    ):
        super().__init__()
        self.target = target
        self.address = address
        self.resolve_names = config.resolve_names
        self.token = token or CancelToken()

        self._event_queue: queue.Queue[RoundEvent | None] = queue.Queue()
        self.scheduler = CycleScheduler(
            config, prober, EventRenderer(self._event_queue.put), address,
            token=self.token, reverse_resolver=reverse_resolver,
        )
        self._thread: Optional[threading.Thread] = None
        self._last: Optional[TableSnapshot] = None
        self._done = False
        self._started = datetime.now()

    def compose(self) -> ComposeResult:
        yield TitleBar(f"  {format_title(self.target, self.address)}", id="title-bar")
        yield DataTable(id="hop-table", cursor_type="none", zebra_stripes=True)
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        table = self.query_one("#hop-table", DataTable)
        table.add_columns(*COLUMNS)
        self._update_status()
        self.run_worker(self._run_scheduler(), exclusive=True, group="probe")

    # ── Scheduler integration ───────────────────────────────────────────

    async def _run_scheduler(self) -> None:
        """Scheduler (sync, threads) → queue.put(RoundEvent) → async poll → TUI."""

        def _scheduler_thread():
            try:
                self.scheduler.run()
            finally:
                self._event_queue.put(None)

        self._thread = threading.Thread(target=_scheduler_thread, daemon=True)
        self._thread.start()

        while True:
            try:
                evt = self._event_queue.get_nowait()
            except queue.Empty:
                await asyncio.sleep(0.05)
                continue
            if evt is None:
                break
            self._process_event(evt)

    def _process_event(self, evt: RoundEvent) -> None:
        self._last = evt.snapshot
        if evt.event == ROUND_DONE:
            self._refresh_table(evt.snapshot, evt.snapshot.display_count)
        elif evt.event == RUN_DONE:
            self._done = True
            self._refresh_table(evt.snapshot, evt.snapshot.final_count)
        self._update_status()

    def _refresh_table(self, snapshot: TableSnapshot, count: int) -> None:
        table = self.query_one("#hop-table", DataTable)
        table.clear()
        for hop in snapshot.rows(count):
            table.add_row(*hop_cells(hop, self.resolve_names))

    # ── Status bar ──────────────────────────────────────────────────────

    def _update_status(self) -> None:
        bar = self.query_one("#status-bar", StatusBar)
        elapsed = (datetime.now() - self._started).total_seconds()
        snap = self._last
        cycle = snap.cycle if snap else 0
        target_hop = snap.target_horizon if snap and snap.target_horizon else "?"
        state = "[#00ff88]✓ DONE[/]" if self._done else "[#00d4ff]⟳[/]"
        bar.update(Text.from_markup(
            f"  {state} cycle {cycle} │ target hop {target_hop} │ "
            f"{elapsed:.0f}s │ q:quit"
        ))

    # ── Key bindings ────────────────────────────────────────────────────

    def action_quit(self) -> None:
        self.token.cancel()
        self.exit()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the scheduler thread; it stops at the next round boundary."""
        self.token.cancel()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
