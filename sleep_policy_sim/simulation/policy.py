from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from sleep_policy_sim.errors import PolicyConfigError
from sleep_policy_sim.trace.schemas import DAYS_PER_WEEK, MINUTES_PER_DAY

log = logging.getLogger(__name__)

# Legacy configs use -1 for "never wake"; None is the in-memory form.
NEVER_WAKE_SENTINEL = -1


def _plain_int(value: Any, key: str) -> int:
    # YAML floats, bools and strings are config mistakes, not minutes
    if isinstance(value, bool) or not isinstance(value, int):
        raise PolicyConfigError(f"{key} must be a plain integer, got {value!r}")
    return value


@dataclass(frozen=True)
class PowerPolicy:
    """
    Dual-threshold idle timeout for one kind of day.

    timeout1 applies on [0, boundary1] and (boundary2, 1439];
    timeout2 applies on (boundary1, boundary2].
    """

    timeout1: int
    timeout2: int
    boundary1: int
    boundary2: int
    wake_time: Optional[int] = None

    def validate(self, name: str = "policy") -> None:
        for key in ("timeout1", "timeout2", "boundary1", "boundary2"):
            val = getattr(self, key)
            if not isinstance(val, int) or isinstance(val, bool):
                raise PolicyConfigError(f"{name}.{key} must be an integer, got {val!r}")
        if self.timeout1 < 1 or self.timeout2 < 1:
            raise PolicyConfigError(f"{name}: timeouts must be >= 1 minute (got {self.timeout1}, {self.timeout2})")
        for key in ("boundary1", "boundary2"):
            val = getattr(self, key)
            if not 0 <= val < MINUTES_PER_DAY:
                raise PolicyConfigError(f"{name}.{key}={val} outside [0, {MINUTES_PER_DAY - 1}]")
        if self.boundary1 > self.boundary2:
            raise PolicyConfigError(f"{name}: boundary1 ({self.boundary1}) > boundary2 ({self.boundary2})")
        if self.wake_time is not None:
            if not isinstance(self.wake_time, int) or isinstance(self.wake_time, bool):
                raise PolicyConfigError(f"{name}.wake_time must be an integer or None, got {self.wake_time!r}")
            if not 0 <= self.wake_time < MINUTES_PER_DAY:
                raise PolicyConfigError(f"{name}.wake_time={self.wake_time} outside [0, {MINUTES_PER_DAY - 1}]")

    def threshold_at(self, minute_of_day: int) -> int:
        if minute_of_day <= self.boundary1 or minute_of_day > self.boundary2:
            return self.timeout1
        return self.timeout2

    def is_segment_start(self, minute_of_day: int) -> bool:
        # Kept separate from threshold_at: the first minute after each boundary.
        return minute_of_day == self.boundary1 + 1 or minute_of_day == self.boundary2 + 1

    def wakes_at(self, minute_of_day: int) -> bool:
        return self.wake_time is not None and minute_of_day == self.wake_time

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], name: str = "policy") -> "PowerPolicy":
        missing = [k for k in ("timeout1", "timeout2", "boundary1", "boundary2") if k not in d]
        if missing:
            raise PolicyConfigError(f"{name}: missing keys {missing}")
        wake = d.get("wake_time")
        if wake is not None:
            wake = _plain_int(wake, f"{name}.wake_time")
            if wake == NEVER_WAKE_SENTINEL:
                wake = None
        policy = cls(
            timeout1=_plain_int(d["timeout1"], f"{name}.timeout1"),
            timeout2=_plain_int(d["timeout2"], f"{name}.timeout2"),
            boundary1=_plain_int(d["boundary1"], f"{name}.boundary1"),
            boundary2=_plain_int(d["boundary2"], f"{name}.boundary2"),
            wake_time=wake,
        )
        policy.validate(name)
        return policy


@dataclass(frozen=True)
class DaySet:
    """Day-of-week indices (0..6) treated as weekend. No calendar mapping implied."""

    days: FrozenSet[int] = frozenset({1, 2})

    @classmethod
    def of(cls, days: Iterable[int]) -> "DaySet":
        return cls(frozenset(int(d) for d in days))

    def validate(self) -> None:
        bad = sorted(d for d in self.days if not 0 <= d < DAYS_PER_WEEK)
        if bad:
            raise PolicyConfigError(f"weekend_days contains indices outside [0, {DAYS_PER_WEEK - 1}]: {bad}")

    def __contains__(self, day: object) -> bool:
        return day in self.days


# Office-hours weekday schedule with an 08:00 wake, 45-minute weekends.
DEFAULT_WEEKDAY = PowerPolicy(timeout1=45, timeout2=480, boundary1=480, boundary2=1080, wake_time=480)
DEFAULT_WEEKEND = PowerPolicy(timeout1=45, timeout2=45, boundary1=480, boundary2=480, wake_time=None)


@dataclass(frozen=True)
class PolicySchedule:
    weekday: PowerPolicy = DEFAULT_WEEKDAY
    weekend: PowerPolicy = DEFAULT_WEEKEND
    weekend_days: DaySet = field(default_factory=DaySet)

    def validate(self) -> None:
        self.weekday.validate("weekday")
        self.weekend.validate("weekend")
        self.weekend_days.validate()

    def is_weekend(self, day_of_week: int) -> bool:
        return day_of_week in self.weekend_days

    def policy_for_day(self, day_of_week: int) -> PowerPolicy:
        return self.weekend if self.is_weekend(day_of_week) else self.weekday

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "PolicySchedule":
        """
        Build from the 'policy' section of a config:
          policy:
            weekend_days: [1, 2]
            weekday: {timeout1: .., timeout2: .., boundary1: .., boundary2: .., wake_time: ..}
            weekend: {...}
        """
        pcfg = cfg.get("policy", cfg) or {}
        weekday = PowerPolicy.from_dict(pcfg.get("weekday") or {}, "weekday") if "weekday" in pcfg else DEFAULT_WEEKDAY
        weekend = PowerPolicy.from_dict(pcfg.get("weekend") or {}, "weekend") if "weekend" in pcfg else DEFAULT_WEEKEND

        days = pcfg.get("weekend_days")
        if days is None:
            weekend_days = DaySet()
        elif isinstance(days, (list, tuple, set)):
            weekend_days = DaySet.of(_plain_int(d, "policy.weekend_days") for d in days)
        else:
            raise PolicyConfigError("Config key 'policy.weekend_days' must be a list of day indices.")

        schedule = cls(weekday=weekday, weekend=weekend, weekend_days=weekend_days)
        schedule.validate()
        log.debug("Policy schedule: %s", schedule)
        return schedule
