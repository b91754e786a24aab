from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from tqdm import tqdm

from sleep_policy_sim.errors import EmptyTraceError
from sleep_policy_sim.simulation.daily import daily_breakdown
from sleep_policy_sim.simulation.policy import PolicySchedule
from sleep_policy_sim.simulation.report import PRICE_PER_KWH, compute_savings, summarize_trace
from sleep_policy_sim.simulation.simulator import simulate
from sleep_policy_sim.trace.loader import read_trace_file, write_policy_trace
from sleep_policy_sim.utils.timer import timed

log = logging.getLogger(__name__)


def _find_trace_files(trace_dir: Path, patterns: List[str]) -> List[Path]:
    """Trace files matching any pattern, each once, in name order."""
    found: Dict[Path, None] = {}
    for pattern in patterns:
        hits = [f for f in trace_dir.glob(pattern) if f.is_file()]
        log.debug("Pattern %r matched %d trace file(s) under %s", pattern, len(hits), trace_dir)
        for f in hits:
            found.setdefault(f.resolve(), None)
    return sorted(found, key=lambda f: (f.name, f.as_posix()))


def find_trace_files(cfg: Dict[str, Any]) -> List[Path]:
    inp = cfg.get("input", {}) or {}
    trace_dir = Path(inp.get("trace_dir", "data/traces"))
    if not trace_dir.exists():
        raise FileNotFoundError(f"Trace directory not found: {trace_dir}")
    files = _find_trace_files(trace_dir, list(inp.get("file_globs", ["**/*.vec"])))
    if not files:
        raise FileNotFoundError(f"No trace files found under: {trace_dir}")
    return files


def run_device(
    path: Path,
    schedule: PolicySchedule,
    out_dir: Path,
    has_header: bool = True,
    price_per_kwh: float = PRICE_PER_KWH,
) -> Dict[str, Any]:
    """Load, simulate and report one trace file. Writes <name>.prc, .res.json, .daily.csv."""
    timings: Dict[str, float] = {}
    with timed("load", timings):
        profile, trace = read_trace_file(path, has_header=has_header)

    with timed("simulate", timings):
        stats = simulate(trace, schedule)

    with timed("report", timings):
        summary = summarize_trace(trace)
        savings = compute_savings(summary, profile.active_watts, profile.sleep_watts, price_per_kwh)
        daily = daily_breakdown(trace, schedule)

    with timed("persist", timings):
        prc_path = write_policy_trace(out_dir / f"{profile.name}.prc", profile, trace)
        daily_path = out_dir / f"{profile.name}.daily.csv"
        daily.to_csv(daily_path, index=False)

        result = {
            "device": profile.name,
            "device_id": profile.device_id,
            "source_file": path.name,
            "active_watts": profile.active_watts,
            "sleep_watts": profile.sleep_watts,
            "minutes": stats.minutes,
            "already_off_minutes": summary.off_minutes,
            "already_asleep_minutes": summary.sleep_minutes,
            "forced_sleep_minutes": summary.forced_sleep_minutes,
            "scheduled_wakes": stats.scheduled_wakes,
            "woken_minutes": stats.woken_minutes,
            **savings.to_dict(),
            "timings_sec": timings,
        }
        res_path = out_dir / f"{profile.name}.res.json"
        res_path.write_text(json.dumps(result, indent=2), encoding="utf-8")

    log.info(
        "%s: forced_sleep=%d min, savings=%.2f kWh (%.2f%%), wakeups=%d -> %s",
        profile.name,
        summary.forced_sleep_minutes,
        savings.kwh,
        savings.percent,
        savings.wakeups,
        prc_path.as_posix(),
    )
    return result


def run_batch(
    cfg: Dict[str, Any],
    out_dir: Path,
    traces: Optional[Sequence[Path]] = None,
) -> pd.DataFrame:
    """
    Simulate every trace in `traces` (or those found via the 'input' config
    section) and write summary.csv. Empty traces are skipped with a warning.
    """
    schedule = PolicySchedule.from_config(cfg)
    inp = cfg.get("input", {}) or {}
    has_header = bool(inp.get("has_header", True))
    price = float((cfg.get("energy", {}) or {}).get("price_per_kwh", PRICE_PER_KWH))

    files = [Path(p) for p in traces] if traces else find_trace_files(cfg)

    rows: List[Dict[str, Any]] = []
    skipped: List[str] = []
    for fp in tqdm(files, desc="Simulating traces"):
        try:
            res = run_device(fp, schedule, out_dir, has_header=has_header, price_per_kwh=price)
        except EmptyTraceError:
            log.warning("Skipping %s: trace is empty", fp.as_posix())
            skipped.append(fp.name)
            continue
        res.pop("timings_sec", None)
        rows.append(res)

    summary = pd.DataFrame(rows)
    summary_path = out_dir / "summary.csv"
    summary.to_csv(summary_path, index=False)
    log.info("Simulated %d trace(s), skipped %d -> %s", len(rows), len(skipped), summary_path.as_posix())
    return summary
