"""
Renderer / Reporter: turns table snapshots into terminal output.

Live:    redraw the whole block after every round (rich.live handles the
         cursor-up / clear-to-end sequence), then print the final report.
Report:  stay quiet, print one table at the end.
Events:  forward snapshots to a callback (the TUI).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional
import json

from rich.console import Console
from rich.live import Live
from rich.text import Text

from .events import EventCallback, RoundEvent, ROUND_DONE, RUN_DONE
from .models import HopRecord, IPAddress, TableSnapshot

HOST_WIDTH = 45
NO_HOST = "???"
NO_VALUE = "---"


# ============================================================
# Row formatting
# ============================================================

def format_host(hop: HopRecord, resolve_names: bool = True) -> str:
    if hop.address is None:
        host = NO_HOST
    elif hop.hostname and resolve_names:
        host = f"{hop.hostname} ({hop.address})"
    else:
        host = str(hop.address)
    return host[:HOST_WIDTH]


def _ms(value: Optional[float]) -> str:
    return NO_VALUE if value is None else f"{value:.1f}"


def hop_cells(hop: HopRecord, resolve_names: bool = True) -> tuple[str, ...]:
    """(hop, host, loss, sent, last, avg, best, worst, stdev) as display strings."""
    avg = hop.avg_rtt if hop.received > 0 else None
    stdev = hop.stddev_rtt if hop.received > 1 else None
    return (
        f"{hop.hop_limit}.",
        format_host(hop, resolve_names),
        f"{hop.loss_percent:.1f}%",
        str(hop.sent),
        _ms(hop.last_rtt), _ms(avg), _ms(hop.min_rtt), _ms(hop.max_rtt), _ms(stdev),
    )


def format_hop(hop: HopRecord, resolve_names: bool = True) -> str:
    num, host, loss, sent, last, avg, best, worst, stdev = hop_cells(hop, resolve_names)
    return (
        f"{num:>4} {host:<{HOST_WIDTH}} {loss:>6} {sent:>5} "
        f"{last:>6} {avg:>6} {best:>6} {worst:>6} {stdev:>6}"
    )


def format_header() -> str:
    return (
        f"{'':>4} {'Host':<{HOST_WIDTH}} {'Loss%':>6} {'Snt':>5} "
        f"{'Last':>6} {'Avg':>6} {'Best':>6} {'Wrst':>6} {'StDev':>6}"
    )


def format_title(target: str, address: IPAddress) -> str:
    return f"pingtrace to {target} ({address})"


def render_lines(snapshot: TableSnapshot, count: int, target: str,
                 address: IPAddress, resolve_names: bool = True) -> list[str]:
    """Title, header, then hop-limits 1..count."""
    lines = [format_title(target, address), format_header()]
    lines.extend(format_hop(h, resolve_names) for h in snapshot.rows(count))
    return lines


def _block(lines: list[str]) -> Text:
    text = Text()
    text.append(lines[0], style="bold")
    text.append("\n" + lines[1], style="dim")
    for line in lines[2:]:
        text.append("\n" + line)
    return text


# ============================================================
# Renderers
# ============================================================

class Renderer(ABC):
    """Scheduler-facing sink. round_complete is skipped in report mode."""

    def round_complete(self, snapshot: TableSnapshot) -> None:
        pass

    @abstractmethod
    def final(self, snapshot: TableSnapshot) -> None:
        raise NotImplementedError


class ReportRenderer(Renderer):
    """One table (or one JSON document) at the end of the run."""

    def __init__(self, target: str, address: IPAddress,
                 resolve_names: bool = True, json_output: bool = False,
                 console: Optional[Console] = None):
        self.target = target
        self.address = address
        self.resolve_names = resolve_names
        self.json_output = json_output
        self.console = console or Console(highlight=False)

    def final(self, snapshot: TableSnapshot) -> None:
        count = snapshot.final_count
        if self.json_output:
            doc = {
                "target": self.target,
                "address": str(self.address),
                "cycles": snapshot.cycle,
                "target_hop": snapshot.target_horizon,
                "hops": [h.to_dict() for h in snapshot.rows(count)],
            }
            self.console.out(json.dumps(doc, indent=2), highlight=False)
            return
        lines = render_lines(snapshot, count, self.target, self.address,
                             self.resolve_names)
        self.console.print(_block(lines), soft_wrap=True)


class LiveRenderer(ReportRenderer):
    """Redraw after every round, final report underneath when done."""

    def __init__(self, target: str, address: IPAddress,
                 resolve_names: bool = True,
                 console: Optional[Console] = None):
        super().__init__(target, address, resolve_names, console=console)
        self._live: Optional[Live] = None
        self.redraws = 0

    def round_complete(self, snapshot: TableSnapshot) -> None:
        lines = render_lines(snapshot, snapshot.display_count, self.target,
                             self.address, self.resolve_names)
        if self._live is None:
            self._live = Live(_block(lines), console=self.console,
                              auto_refresh=False)
            self._live.start(refresh=True)
        else:
            self._live.update(_block(lines), refresh=True)
        self.redraws += 1

    def final(self, snapshot: TableSnapshot) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self.console.print()
        super().final(snapshot)


class EventRenderer(Renderer):
    """Forwards every snapshot to a callback as a RoundEvent."""

    def __init__(self, callback: EventCallback):
        self.callback = callback

    def round_complete(self, snapshot: TableSnapshot) -> None:
        self.callback(RoundEvent(ROUND_DONE, snapshot.cycle, snapshot))

    def final(self, snapshot: TableSnapshot) -> None:
        self.callback(RoundEvent(RUN_DONE, snapshot.cycle, snapshot))
