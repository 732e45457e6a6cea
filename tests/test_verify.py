"""Tests for launch verification."""

from __future__ import annotations

from dataclasses import replace

import pytest

from lottery_registry.entropy import HashRandomness
from lottery_registry.registry import LotteryRegistry
from lottery_registry.verify import verify_launch

from conftest import NOW


@pytest.fixture
def hashed_registry(store, clock):
    return LotteryRegistry(
        store=store,
        randomness=HashRandomness(unpredictability=lambda: "blockhash"),
        clock=clock,
    )


def _launched(registry, clock, owner, players):
    lottery_id = registry.create_lottery(NOW + 100, 1, owner)
    for p in players:
        registry.buy_ticket(lottery_id, p)
    clock.advance(100)
    registry.launch_lottery(lottery_id, owner)
    return registry.get_lottery(lottery_id)


def test_verifies_hash_draw(hashed_registry, clock, owner, alice, bob, carol):
    lottery = _launched(hashed_registry, clock, owner, [alice, bob, carol])
    result = verify_launch(lottery)
    assert result["ok"] is True
    assert result["winner"] == lottery.winner
    assert result["total_players"] == 3
    assert result["seed_hash_hex"] == lottery.draw.seed_hash_hex


def test_detects_swapped_winner(hashed_registry, clock, owner, alice, bob, carol):
    lottery = _launched(hashed_registry, clock, owner, [alice, bob, carol])
    other = next(p for p in lottery.players if p != lottery.winner)
    with pytest.raises(RuntimeError, match="Winner mismatch"):
        verify_launch(replace(lottery, winner=other))


def test_detects_added_player(hashed_registry, clock, owner, alice, bob, addr):
    lottery = _launched(hashed_registry, clock, owner, [alice, bob])
    with pytest.raises(RuntimeError, match="Player count mismatch"):
        verify_launch(replace(lottery, players=lottery.players + [addr(50)]))


def test_detects_edited_entropy(hashed_registry, clock, owner, alice, bob):
    lottery = _launched(hashed_registry, clock, owner, [alice, bob])
    tampered = replace(lottery, draw=replace(lottery.draw, entropy=lottery.draw.entropy + "x"))
    with pytest.raises(RuntimeError, match="Seed hash mismatch"):
        verify_launch(tampered)


def test_active_lottery_has_nothing_to_verify(registry, owner):
    lottery_id = registry.create_lottery(NOW + 100, 1, owner)
    with pytest.raises(RuntimeError, match="no launch"):
        verify_launch(registry.get_lottery(lottery_id))


def test_seeded_draw_cannot_be_recomputed(registry, clock, owner, alice):
    lottery = _launched(registry, clock, owner, [alice])
    with pytest.raises(RuntimeError, match="non-hash source"):
        verify_launch(lottery)
