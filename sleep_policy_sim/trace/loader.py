from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Tuple, Union

from sleep_policy_sim.errors import MalformedTraceError
from sleep_policy_sim.trace.schemas import ALL_STATES, SENSOR_STATES, ActivityTrace, DeviceProfile, State

log = logging.getLogger(__name__)

HEADER_SPLIT_RE = re.compile(r"[,\s]+")


def _first_line(text: str) -> str:
    nl = text.find("\n")
    line = text if nl < 0 else text[:nl]
    # tolerate CRLF files
    return line[:-1] if line.endswith("\r") else line


def _map_symbols(line: str, alphabet: Dict[str, State]) -> ActivityTrace:
    states: List[State] = []
    for pos, ch in enumerate(line):
        st = alphabet.get(ch)
        if st is None:
            raise MalformedTraceError(ch, pos)
        states.append(st)
    return ActivityTrace(states)


def load_trace(text: str) -> ActivityTrace:
    """
    Parse a raw sensor trace (A/U/S/I/O, one symbol per minute).

    Loading stops at the first newline or end of input. Any other symbol,
    including the simulator-only Z, raises MalformedTraceError.
    """
    return _map_symbols(_first_line(text), SENSOR_STATES)


def load_policy_trace(text: str) -> ActivityTrace:
    """Like load_trace but accepts Z, for reading simulator output back."""
    return _map_symbols(_first_line(text), ALL_STATES)


def parse_device_header(line: str) -> DeviceProfile:
    """
    Header line of a trace file:
      id, name[, activeWatts[, sleepWatts]]
    Missing wattages keep their defaults.
    """
    tokens = [t for t in HEADER_SPLIT_RE.split(line.strip()) if t]
    if len(tokens) < 2:
        raise MalformedTraceError(line.strip(), 0, f"Trace header needs at least 'id, name': {line.strip()!r}")

    defaults = DeviceProfile(device_id=tokens[0], name=tokens[1])
    watts = [defaults.active_watts, defaults.sleep_watts]
    extra = tokens[2:4]
    if len(extra) < 2:
        log.warning("Trace header for %s sets only %d of 2 wattages; using defaults for the rest", tokens[1], len(extra))
    for i, tok in enumerate(extra):
        try:
            watts[i] = float(tok)
        except ValueError as e:
            raise MalformedTraceError(tok, i + 2, f"Non-numeric wattage {tok!r} in trace header") from e

    return DeviceProfile(device_id=tokens[0], name=tokens[1], active_watts=watts[0], sleep_watts=watts[1])


def read_trace_file(path: Union[str, Path], has_header: bool = True) -> Tuple[DeviceProfile, ActivityTrace]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")

    text = path.read_text(encoding="latin-1")
    if has_header:
        header, _, body = text.partition("\n")
        profile = parse_device_header(header)
    else:
        body = text
        profile = DeviceProfile(device_id=path.stem, name=path.stem)

    trace = load_trace(body)
    log.info("Loaded trace %s: device=%s minutes=%d", path.name, profile.name, len(trace))
    return profile, trace


def write_policy_trace(path: Union[str, Path], profile: DeviceProfile, trace: ActivityTrace) -> Path:
    """Write the policy-enforced trace: 'name,active,sleep' line, then symbols."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="latin-1", newline="") as f:
        f.write(f"{profile.name},{profile.active_watts:f},{profile.sleep_watts:f}\n")
        f.write(trace.to_symbols())
    return path


def read_policy_trace(path: Union[str, Path]) -> Tuple[DeviceProfile, ActivityTrace]:
    path = Path(path)
    text = path.read_text(encoding="latin-1")
    header, _, body = text.partition("\n")
    tokens = [t for t in header.strip().split(",") if t.strip()]
    if not tokens:
        raise MalformedTraceError(header, 0, f"Missing device line in {path}")
    name = tokens[0].strip()
    try:
        active = float(tokens[1]) if len(tokens) > 1 else DeviceProfile.active_watts
        sleep = float(tokens[2]) if len(tokens) > 2 else DeviceProfile.sleep_watts
    except ValueError as e:
        raise MalformedTraceError(header, 0, f"Bad wattage in device line of {path}") from e
    profile = DeviceProfile(device_id=name, name=name, active_watts=active, sleep_watts=sleep)
    return profile, load_policy_trace(body)
