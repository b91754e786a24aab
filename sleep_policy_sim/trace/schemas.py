from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Union, overload

MINUTES_PER_DAY = 1440
DAYS_PER_WEEK = 7


class State(str, Enum):
    ACTIVE = "A"
    UNKNOWN = "U"
    SLEEP = "S"
    IDLE = "I"
    OFF = "O"
    FORCED_SLEEP = "Z"

    def __str__(self) -> str:
        return self.value


# Symbols an upstream sensor may emit. Z only ever comes from the simulator.
SENSOR_STATES: Dict[str, State] = {
    s.value: s for s in (State.ACTIVE, State.UNKNOWN, State.SLEEP, State.IDLE, State.OFF)
}
ALL_STATES: Dict[str, State] = {s.value: s for s in State}

# Fresh signals that end an idle episode.
INTERRUPTING_STATES: FrozenSet[State] = frozenset({State.ACTIVE, State.UNKNOWN, State.OFF, State.SLEEP})
WAKEABLE_STATES: FrozenSet[State] = frozenset({State.FORCED_SLEEP, State.SLEEP})


@dataclass(frozen=True)
class DeviceProfile:
    device_id: str
    name: str
    active_watts: float = 100.0
    sleep_watts: float = 0.0


class ActivityTrace:
    """
    Per-minute state sequence. Index 0 is midnight of day 0.

    Mutated in place by the simulator; the helpers below keep the backward
    look and the forward wake scan inside the trace bounds.
    """

    def __init__(self, states: Iterable[State] = ()):
        self._states: List[State] = list(states)

    @classmethod
    def from_symbols(cls, symbols: str) -> "ActivityTrace":
        return cls(ALL_STATES[c] for c in symbols)

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[State]:
        return iter(self._states)

    @overload
    def __getitem__(self, index: int) -> State: ...

    @overload
    def __getitem__(self, index: slice) -> List[State]: ...

    def __getitem__(self, index: Union[int, slice]):
        return self._states[index]

    def __setitem__(self, index: int, state: State) -> None:
        self._states[index] = state

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ActivityTrace):
            return self._states == other._states
        return NotImplemented

    def __repr__(self) -> str:
        preview = self.to_symbols()
        if len(preview) > 40:
            preview = preview[:37] + "..."
        return f"ActivityTrace(n={len(self)}, {preview!r})"

    def copy(self) -> "ActivityTrace":
        return ActivityTrace(self._states)

    def to_symbols(self) -> str:
        return "".join(s.value for s in self._states)

    def previous_is(self, index: int, state: State) -> bool:
        """True if the minute before `index` exists and holds `state`."""
        prev = index - 1
        if prev < 0 or prev >= len(self._states):
            return False
        return self._states[prev] is state

    def wake_from(self, index: int, limit: int) -> int:
        """
        Relabel the contiguous run of Sleep/ForcedSleep minutes starting at
        `index` to Idle. Stops at the first other label, after `limit`
        minutes, or at the end of the trace. Returns the number relabelled.
        """
        end = min(len(self._states), index + max(limit, 0))
        woken = 0
        for i in range(max(index, 0), end):
            if self._states[i] not in WAKEABLE_STATES:
                break
            self._states[i] = State.IDLE
            woken += 1
        return woken
