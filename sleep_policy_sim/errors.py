from __future__ import annotations

from typing import Optional


class SleepPolicySimError(Exception):
    """Base class for every error raised by sleep_policy_sim."""


class MalformedTraceError(SleepPolicySimError):
    def __init__(self, symbol: str, position: int, message: Optional[str] = None):
        self.symbol = symbol
        self.position = position
        if message is None:
            message = f"Illegal trace symbol {symbol!r} at position {position}"
        super().__init__(message)


class PolicyConfigError(SleepPolicySimError):
    """Invalid power policy parameters. Raised before any trace mutation."""


class EmptyTraceError(SleepPolicySimError):
    """Zero-length trace; usually an upstream data problem."""
