"""
Shared event types for scheduler ↔ TUI communication.

The scheduler never imports the TUI; EventRenderer turns each round into a
RoundEvent and hands it to a callback (typically queue.Queue.put).

Usage (TUI side):
    from .events import RoundEvent
    for evt in event_stream:
        process(evt)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .models import TableSnapshot


ROUND_DONE = "round_done"
RUN_DONE = "run_done"


@dataclass(frozen=True)
class RoundEvent:
    """
    Events:
        round_done : one fan-out/fan-in pass merged
        run_done   : scheduler stopped, snapshot is final
    """
    event: str
    cycle: int
    snapshot: TableSnapshot


# Type alias for the event callback
EventCallback = Callable[[RoundEvent], None]
