from __future__ import annotations

import logging
from dataclasses import dataclass

from sleep_policy_sim.errors import EmptyTraceError
from sleep_policy_sim.simulation.policy import PolicySchedule
from sleep_policy_sim.trace.schemas import (
    DAYS_PER_WEEK,
    INTERRUPTING_STATES,
    MINUTES_PER_DAY,
    ActivityTrace,
    State,
)

log = logging.getLogger(__name__)


@dataclass
class SimulationState:
    idle_run_length: int = 0
    is_idle: bool = False
    day_of_week: int = 0
    minute_of_day: int = 0


@dataclass
class SimulationStats:
    minutes: int = 0
    forced_sleep_minutes: int = 0
    scheduled_wakes: int = 0
    woken_minutes: int = 0


def simulate(trace: ActivityTrace, schedule: PolicySchedule) -> SimulationStats:
    """
    Apply the weekday/weekend idle-timeout schedule to `trace` in place.

    Per minute: pick the policy by day of week, track the idle episode,
    write ForcedSleep once the time-of-day threshold is reached, and at
    the policy's wake time relabel the sleep run starting here to Idle.

    Raises PolicyConfigError before touching the trace, and EmptyTraceError
    (after doing nothing) for a zero-length trace.
    """
    schedule.validate()

    n = len(trace)
    stats = SimulationStats(minutes=n)
    if n == 0:
        raise EmptyTraceError("Trace has no minutes; nothing to simulate.")

    st = SimulationState()

    for i in range(n):
        day_index, st.minute_of_day = divmod(i, MINUTES_PER_DAY)
        if st.minute_of_day == 0:
            st.day_of_week = day_index % DAYS_PER_WEEK
        policy = schedule.policy_for_day(st.day_of_week)
        threshold = policy.threshold_at(st.minute_of_day)

        label = trace[i]
        if label is State.IDLE and not st.is_idle:
            st.is_idle = True
        if label in INTERRUPTING_STATES:
            st.is_idle = False
            st.idle_run_length = 0

        if st.is_idle:
            if policy.is_segment_start(st.minute_of_day):
                # stay asleep across a segment change, otherwise restart the count
                if trace.previous_is(i, State.FORCED_SLEEP):
                    st.idle_run_length = threshold
                else:
                    st.idle_run_length = 0

            if st.idle_run_length >= threshold:
                trace[i] = State.FORCED_SLEEP
                stats.forced_sleep_minutes += 1
            else:
                st.idle_run_length += 1

        if policy.wakes_at(st.minute_of_day):
            if trace[i] is State.FORCED_SLEEP:
                stats.forced_sleep_minutes -= 1
            stats.woken_minutes += trace.wake_from(i, threshold)
            stats.scheduled_wakes += 1
            st.is_idle = False
            st.idle_run_length = 0

    log.debug(
        "Simulated %d minutes: forced_sleep=%d wakes=%d woken=%d",
        stats.minutes,
        stats.forced_sleep_minutes,
        stats.scheduled_wakes,
        stats.woken_minutes,
    )
    return stats
