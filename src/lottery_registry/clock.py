"""Time sources for the registry. All times are integer unix seconds."""

from __future__ import annotations

import time
from typing import Protocol

from .rpc import RpcClient


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock for tests and dry runs."""

    def __init__(self, start: int) -> None:
        self.current = int(start)

    def now(self) -> int:
        return self.current

    def set(self, timestamp: int) -> None:
        self.current = int(timestamp)

    def advance(self, seconds: int) -> int:
        self.current += int(seconds)
        return self.current


class ChainClock:
    """Uses the block time of the current finalized slot as 'now'."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def now(self) -> int:
        slot = self.rpc.get_slot()
        return self.rpc.get_block_time(slot)
