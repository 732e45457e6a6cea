from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from filelock import FileLock

from .events import Event, event_from_dict, event_to_dict
from .models import Lottery, LotteryStatus


class LotteryStore:
    """
    In-memory record store for one registry.

    All reads and writes go through ``lock``; the registry holds it for the
    whole of each operation so that every operation is applied serially.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.lottery_count = 0
        self.events: List[Event] = []
        self._lotteries: Dict[int, Lottery] = {}

    def allocate_id(self) -> int:
        with self.lock:
            self.lottery_count += 1
            return self.lottery_count

    def insert(self, lottery: Lottery) -> None:
        with self.lock:
            if lottery.id != self.lottery_count or lottery.id in self._lotteries:
                raise RuntimeError(f"Lottery id {lottery.id} was not allocated by this store.")
            self._lotteries[lottery.id] = lottery

    def get(self, lottery_id: int) -> Optional[Lottery]:
        with self.lock:
            return self._lotteries.get(lottery_id)

    def all(self) -> List[Lottery]:
        with self.lock:
            return [self._lotteries[i] for i in range(1, self.lottery_count + 1)]

    def record(self, event: Event) -> None:
        with self.lock:
            self.events.append(event)

    def to_dict(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "lottery_count": self.lottery_count,
                "lotteries": [lottery.to_dict() for lottery in self.all()],
                "events": [event_to_dict(e) for e in self.events],
            }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LotteryStore":
        store = LotteryStore()
        lotteries = [Lottery.from_dict(item) for item in data.get("lotteries", [])]
        count = int(data.get("lottery_count", len(lotteries)))

        # Ids must be dense: 1..count, in order
        ids = [lottery.id for lottery in lotteries]
        if ids != list(range(1, count + 1)):
            raise RuntimeError(
                f"State file ids are not sequential: count={count} ids={ids}"
            )
        for lottery in lotteries:
            check_record(lottery)

        store.lottery_count = count
        store._lotteries = {lottery.id: lottery for lottery in lotteries}
        store.events = [event_from_dict(e) for e in data.get("events", [])]
        return store

    def save(self, path: str) -> None:
        data = self.to_dict()
        directory = os.path.dirname(os.path.abspath(path))
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{os.path.basename(path)}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            json.dump(data, f, indent=2)
        try:
            os.replace(f.name, path)
        except OSError:
            os.unlink(f.name)
            raise

    @staticmethod
    def load(path: str) -> "LotteryStore":
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise RuntimeError(f"State file {path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise RuntimeError(f"State file {path} must contain a JSON object.")
        return LotteryStore.from_dict(data)

    @staticmethod
    def open(path: str) -> "LotteryStore":
        """Load ``path`` if it exists, else start an empty store."""
        if not os.path.exists(path):
            return LotteryStore()
        return LotteryStore.load(path)

    @staticmethod
    @contextmanager
    def locked(path: str, timeout: float = 30.0) -> Iterator["LotteryStore"]:
        """
        Open ``path`` while holding ``<path>.lock`` across processes.

        Save inside the block; another process opening the same file waits
        until the block exits, so it sees every id allocated here.
        """
        with FileLock(f"{path}.lock", timeout=timeout):
            yield LotteryStore.open(path)


def check_record(lottery: Lottery) -> None:
    """Reject a loaded record whose status, winner and draw disagree."""
    closed = lottery.status is LotteryStatus.CLOSED
    if (lottery.winner is not None) != closed:
        raise RuntimeError(
            f"Lottery {lottery.id}: status {lottery.status.value} with winner={lottery.winner!r}"
        )
    if (lottery.draw is not None) != closed:
        raise RuntimeError(
            f"Lottery {lottery.id}: status {lottery.status.value} with a recorded draw={lottery.draw is not None}"
        )
    if closed and lottery.winner not in lottery.players:
        raise RuntimeError(f"Lottery {lottery.id}: winner {lottery.winner} is not a player")
