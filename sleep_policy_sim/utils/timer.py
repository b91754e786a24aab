from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

log = logging.getLogger(__name__)


@contextmanager
def timed(section: str, timings: Optional[Dict[str, float]] = None) -> Iterator[None]:
    """Record wall time of a block under `section`, accumulating across calls."""
    start = time.perf_counter()
    try:
        yield
    finally:
        dur = time.perf_counter() - start
        if timings is not None:
            timings[section] = timings.get(section, 0.0) + dur
        log.debug("%s took %.3fs", section, dur)
