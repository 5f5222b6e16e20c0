"""
Cycle Scheduler: repeated fan-out / fan-in probing rounds.

Sequence per round:
    1. horizon = target horizon, or max_ttl until the target has answered
    2. one probe task per hop-limit 1..horizon, all in flight at once
    3. wait for every task; a task that blew up contributes nothing
    4. sort by hop-limit; the lowest replying hop-limit claims the horizon
    5. merge the whole round under one lock
    6. hand a snapshot to the renderer (not in report mode)
    7. stop on report-cycles, count, or cancellation; else sleep interval

Reverse lookups run on their own small pool after the merge lock is
released, and write the hostname back under a short separate acquisition.
A hop whose lookup fails is tried again on a later round. At shutdown,
queued lookups are cancelled and running ones get one probe timeout.
A slow PTR record never stalls a round.

Cancellation is checked at round boundaries only. An in-flight round
always finishes, so worst-case shutdown latency is one probe timeout.
"""

from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional
import logging
import threading

from .models import HopTable, IPAddress, ProbeOutcome, TableSnapshot
from .prober import Prober
from .render import Renderer
from .resolver import ReverseResolver

logger = logging.getLogger("pingtrace")

LOOKUP_WORKERS = 4


# ============================================================
# Scheduler Configuration
# ============================================================

@dataclass
class SchedulerConfig:
    count: int = 0                      # total rounds, 0 = until cancelled
    interval_ms: int = 500              # sleep between rounds
    max_ttl: int = 30
    resolve_names: bool = True
    report: bool = False                # no per-round render
    report_cycles: int = 10
    timeout_ms: int = 500               # per probe


# ============================================================
# Cancellation
# ============================================================

class CancelToken:
    """Cooperative, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to seconds; returns early (True) once cancelled."""
        return self._event.wait(seconds)


# ============================================================
# Cycle Scheduler
# ============================================================

class CycleScheduler:
    """
    Usage:
        scheduler = CycleScheduler(config, prober, renderer, address)
        snapshot = scheduler.run()      # blocks until done or cancelled
    """

    def __init__(
        self,
        config: SchedulerConfig,
        prober: Prober,
        renderer: Renderer,
        destination: IPAddress,
        token: Optional[CancelToken] = None,
        reverse_resolver: Optional[ReverseResolver] = None,
    ):
        self.config = config
        self.prober = prober
        self.renderer = renderer
        self.destination = destination
        self.token = token or CancelToken()
        self.reverse_resolver = reverse_resolver or ReverseResolver()

        self.table = HopTable(config.max_ttl)
        self.cycle = 0
        self._horizon = config.max_ttl
        self._lock = threading.Lock()
        self._lookups_in_flight: dict[int, Future] = {}

    # ────────────────────────────────────────────
    # Main Loop
    # ────────────────────────────────────────────

    def run(self) -> TableSnapshot:
        cfg = self.config
        logger.info(f"Starting probe cycles to {self.destination}: "
                    f"max_ttl={cfg.max_ttl} timeout={cfg.timeout_ms}ms "
                    f"interval={cfg.interval_ms}ms "
                    f"{'report' if cfg.report else 'live'} mode")

        probe_pool = ThreadPoolExecutor(max_workers=cfg.max_ttl,
                                        thread_name_prefix="probe")
        lookup_pool = ThreadPoolExecutor(max_workers=LOOKUP_WORKERS,
                                         thread_name_prefix="rdns")
        try:
            while not self.token.cancelled:
                self.cycle += 1
                self._horizon = self.table.target_horizon.get() or cfg.max_ttl

                results = self._probe_round(probe_pool, self._horizon)

                with self._lock:
                    had_target = self.table.target_horizon.is_set
                    responders = self.table.merge(results)
                    snapshot = self.table.snapshot(self._horizon, self.cycle)
                if not had_target and snapshot.target_horizon:
                    logger.info(f"Target reached at hop {snapshot.target_horizon} "
                                f"in cycle {self.cycle}")
                self._schedule_lookups(lookup_pool, responders)

                if not cfg.report:
                    self.renderer.round_complete(snapshot)

                if cfg.report and self.cycle >= cfg.report_cycles:
                    break
                if cfg.count > 0 and self.cycle >= cfg.count:
                    break

                if cfg.interval_ms > 0 and not self.token.cancelled:
                    self.token.wait(cfg.interval_ms / 1000.0)
        finally:
            probe_pool.shutdown(wait=True)
            # queued lookups are dropped; running ones get one probe timeout
            lookup_pool.shutdown(wait=False, cancel_futures=True)
            with self._lock:
                pending = list(self._lookups_in_flight.values())
            if pending:
                wait(pending, timeout=cfg.timeout_ms / 1000.0)
            final = self.snapshot()
            logger.info(f"Stopped after {self.cycle} cycles "
                        f"(cancelled={self.token.cancelled}, "
                        f"target hop={final.target_horizon})")
            self.renderer.final(final)

        return final

    def snapshot(self) -> TableSnapshot:
        with self._lock:
            return self.table.snapshot(self._horizon, self.cycle)

    # ────────────────────────────────────────────
    # Fan-out / Fan-in
    # ────────────────────────────────────────────

    def _probe_round(self, pool: ThreadPoolExecutor,
                     horizon: int) -> list[tuple[int, ProbeOutcome]]:
        futures: dict[int, Future] = {
            hop_limit: pool.submit(self.prober.probe, self.destination,
                                   hop_limit, self.config.timeout_ms)
            for hop_limit in range(1, horizon + 1)
        }

        results: list[tuple[int, ProbeOutcome]] = []
        for hop_limit, future in futures.items():
            try:
                results.append((hop_limit, future.result()))
            except Exception as e:
                # dropped for this round, not retried
                logger.debug(f"cycle {self.cycle} hop {hop_limit}: "
                             f"task failed, dropped: {type(e).__name__}: {e}")

        results.sort(key=lambda pair: pair[0])
        return results

    # ────────────────────────────────────────────
    # Reverse Lookups
    # ────────────────────────────────────────────

    def _schedule_lookups(self, pool: ThreadPoolExecutor,
                          responders: list[tuple[int, IPAddress]]) -> None:
        """One lookup in flight per hop; a hop is tried again until named."""
        if not self.config.resolve_names:
            return
        with self._lock:
            for hop_limit, address in responders:
                if hop_limit in self._lookups_in_flight:
                    continue
                if self.table[hop_limit].hostname is not None:
                    continue
                self._lookups_in_flight[hop_limit] = pool.submit(
                    self._resolve_hop, hop_limit, address)

    def _resolve_hop(self, hop_limit: int, address: IPAddress) -> None:
        name = None
        try:
            name = self.reverse_resolver.lookup(address)
        except Exception as e:
            logger.debug(f"hop {hop_limit}: reverse lookup error for {address}: {e}")
        finally:
            with self._lock:
                record = self.table[hop_limit]
                if name is not None and record.hostname is None:
                    record.hostname = name
                self._lookups_in_flight.pop(hop_limit, None)
        if name is not None:
            logger.debug(f"hop {hop_limit}: {address} → {name}")
