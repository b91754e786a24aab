from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List

import numpy as np

from sleep_policy_sim.trace.schemas import ActivityTrace, State

log = logging.getLogger(__name__)

PRICE_PER_KWH = 0.09
WATT_MINUTES_PER_KWH = 60 * 1000

_ASLEEP = (State.SLEEP, State.FORCED_SLEEP)
_AWAKE = (State.ACTIVE, State.UNKNOWN, State.IDLE)


@dataclass(frozen=True)
class TraceSummary:
    total_minutes: int
    off_minutes: int
    sleep_minutes: int
    forced_sleep_minutes: int
    forced_wakeups: int


@dataclass(frozen=True)
class SavingsReport:
    kwh: float
    percent: float
    dollars: float
    wakeups: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_line(self) -> str:
        return f"{self.kwh:.2f},{self.percent:.2f},{self.dollars:.2f},{self.wakeups:d}"


def _codes(trace: ActivityTrace) -> np.ndarray:
    return np.frombuffer(trace.to_symbols().encode("ascii"), dtype=np.uint8)


def forced_wakeup_flags(states: Iterable[State]) -> np.ndarray:
    """
    Per-minute flag: 1 where an A/U/I minute is reached while the asleep
    latch is set. S and Z set the latch, a counted wake clears it, O leaves
    it alone.
    """
    flags: List[int] = []
    asleep = False
    for s in states:
        woke = asleep and s in _AWAKE
        if woke:
            asleep = False
        if s in _ASLEEP:
            asleep = True
        flags.append(1 if woke else 0)
    return np.asarray(flags, dtype=np.int64)


def count_forced_wakeups(states: Iterable[State]) -> int:
    return int(forced_wakeup_flags(states).sum())


def summarize_trace(trace: ActivityTrace) -> TraceSummary:
    codes = _codes(trace)
    return TraceSummary(
        total_minutes=int(codes.size),
        off_minutes=int(np.count_nonzero(codes == ord(State.OFF.value))),
        sleep_minutes=int(np.count_nonzero(codes == ord(State.SLEEP.value))),
        forced_sleep_minutes=int(np.count_nonzero(codes == ord(State.FORCED_SLEEP.value))),
        forced_wakeups=count_forced_wakeups(trace),
    )


def compute_savings(
    summary: TraceSummary,
    active_watts: float,
    sleep_watts: float,
    price_per_kwh: float = PRICE_PER_KWH,
) -> SavingsReport:
    n = summary.total_minutes
    off = summary.off_minutes
    asleep = summary.sleep_minutes
    forced = summary.forced_sleep_minutes

    before = (n - off - asleep) * active_watts + asleep * sleep_watts
    after = (n - off - asleep - forced) * active_watts + (asleep + forced) * sleep_watts
    saved = before - after

    if before == 0:
        log.warning("Baseline consumption is zero (all minutes off/asleep); reporting 0 percent savings")
        percent = 0.0
    else:
        percent = 100.0 * saved / before

    kwh = saved / WATT_MINUTES_PER_KWH
    return SavingsReport(kwh=kwh, percent=percent, dollars=price_per_kwh * kwh, wakeups=summary.forced_wakeups)
