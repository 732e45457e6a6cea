"""
Winner selection.

None of these sources is adversarially secure. The hash scheme mixes the
launch time, an environment value and the caller; the caller knows or can
influence the first and last, and for chain-backed sources can often observe
the blockhash before submitting. Use them for low-stakes draws only.
"""

from __future__ import annotations

import hashlib
import os
import random
from typing import Callable, Optional, Protocol, Tuple

from .models import Draw
from .rpc import RpcClient


class RandomnessSource(Protocol):
    def draw(self, bound: int, timestamp: int, caller: str) -> Draw: ...


def build_entropy(timestamp: int, unpredictability: str, caller: str) -> str:
    return f"{int(timestamp)}:{unpredictability}:{caller}"


def compute_index(entropy: str, bound: int) -> Tuple[int, str, int]:
    if bound <= 0:
        raise ValueError("bound must be positive")
    seed_hash_hex = hashlib.sha256(entropy.encode("utf-8")).hexdigest()
    seed_int = int(seed_hash_hex, 16)
    return seed_int % bound, seed_hash_hex, seed_int


def _urandom_hex() -> str:
    return os.urandom(32).hex()


class HashRandomness:
    """sha256(timestamp:unpredictability:caller) mod bound."""

    def __init__(self, unpredictability: Optional[Callable[[], str]] = None) -> None:
        self.unpredictability = unpredictability or _urandom_hex

    @classmethod
    def from_rpc(cls, rpc: RpcClient) -> "HashRandomness":
        """Latest finalized blockhash as the environment value."""
        return cls(unpredictability=rpc.get_latest_blockhash)

    def draw(self, bound: int, timestamp: int, caller: str) -> Draw:
        entropy = build_entropy(timestamp, self.unpredictability(), caller)
        index, seed_hash_hex, _ = compute_index(entropy, bound)
        return Draw(index=index, bound=bound, entropy=entropy, seed_hash_hex=seed_hash_hex)


class SeededRandomness:
    """Deterministic source for tests. Same seed, same sequence of draws."""

    def __init__(self, seed: int = 0) -> None:
        self.seed = seed
        self._rng = random.Random(seed)
        self._draws = 0

    def draw(self, bound: int, timestamp: int, caller: str) -> Draw:
        if bound <= 0:
            raise ValueError("bound must be positive")
        index = self._rng.randrange(bound)
        self._draws += 1
        return Draw(index=index, bound=bound, entropy=f"seeded:{self.seed}#{self._draws}")
