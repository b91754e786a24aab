from __future__ import annotations

from typing import Dict, List

import pandas as pd

from sleep_policy_sim.simulation.policy import PolicySchedule
from sleep_policy_sim.simulation.report import forced_wakeup_flags
from sleep_policy_sim.trace.schemas import DAYS_PER_WEEK, MINUTES_PER_DAY, ActivityTrace, State

LABEL_COLUMNS = {
    State.ACTIVE: "active",
    State.UNKNOWN: "unknown",
    State.SLEEP: "sleep",
    State.IDLE: "idle",
    State.OFF: "off",
    State.FORCED_SLEEP: "forced_sleep",
}


def daily_breakdown(trace: ActivityTrace, schedule: PolicySchedule) -> pd.DataFrame:
    """One row per (possibly partial) day of the trace with per-label minute counts."""
    columns = ["day_index", "day_of_week", "policy", "minutes", *LABEL_COLUMNS.values(), "forced_wakeups"]
    rows: List[Dict[str, object]] = []
    # flags over the whole trace so a wake just after midnight is still counted
    wakes = forced_wakeup_flags(trace)

    for day_index, start in enumerate(range(0, len(trace), MINUTES_PER_DAY)):
        day = trace[start:start + MINUTES_PER_DAY]
        dow = day_index % DAYS_PER_WEEK
        counts = pd.Series([s.value for s in day]).value_counts()

        row: Dict[str, object] = {
            "day_index": day_index,
            "day_of_week": dow,
            "policy": "weekend" if schedule.is_weekend(dow) else "weekday",
            "minutes": len(day),
        }
        for st, col in LABEL_COLUMNS.items():
            row[col] = int(counts.get(st.value, 0))
        row["forced_wakeups"] = int(wakes[start:start + MINUTES_PER_DAY].sum())
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)
