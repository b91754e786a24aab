from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sleep_policy_sim.errors import SleepPolicySimError
from sleep_policy_sim.simulation.pipeline import run_batch
from sleep_policy_sim.utils.config import ensure_dirs, load_config
from sleep_policy_sim.utils.logging import setup_logging

log = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Apply weekday/weekend sleep policies to per-minute activity traces.")
    p.add_argument("--config", required=True, help="Path to YAML config (supports extends).")
    p.add_argument("--trace", nargs="*", default=None, help="Trace files to simulate (default: input.trace_dir).")
    p.add_argument("--out", default=None, help="Override output.dir from the config.")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)
    if args.out:
        cfg.setdefault("output", {})["dir"] = args.out

    setup_logging(level=cfg.get("logging", {}).get("level", "INFO"))
    out_dir = ensure_dirs(cfg)

    traces = [Path(t) for t in args.trace] if args.trace else None
    try:
        run_batch(cfg, out_dir, traces=traces)
    except (SleepPolicySimError, FileNotFoundError) as e:
        log.error("%s: %s", type(e).__name__, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
