"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from typing import Callable

import pytest

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from lottery_registry.clock import FixedClock  # noqa: E402
from lottery_registry.entropy import SeededRandomness  # noqa: E402
from lottery_registry.identity import address_from_bytes  # noqa: E402
from lottery_registry.registry import LotteryRegistry  # noqa: E402
from lottery_registry.store import LotteryStore  # noqa: E402

NOW = 1_700_000_000


def make_address(n: int) -> str:
    return address_from_bytes(bytes([n % 256]) * 32)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> LotteryStore:
    return LotteryStore()


@pytest.fixture
def registry(store: LotteryStore, clock: FixedClock) -> LotteryRegistry:
    return LotteryRegistry(store=store, randomness=SeededRandomness(42), clock=clock)


@pytest.fixture
def addr() -> Callable[[int], str]:
    return make_address


@pytest.fixture
def owner() -> str:
    return make_address(1)


@pytest.fixture
def alice() -> str:
    return make_address(2)


@pytest.fixture
def bob() -> str:
    return make_address(3)


@pytest.fixture
def carol() -> str:
    return make_address(4)
