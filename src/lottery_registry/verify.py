from __future__ import annotations

from typing import Any, Dict

from .entropy import compute_index
from .models import Lottery, LotteryStatus


def verify_launch(lottery: Lottery) -> Dict[str, Any]:
    """Recompute a hash-based draw from the stored entropy and check the winner."""
    if lottery.status is not LotteryStatus.CLOSED or lottery.draw is None:
        raise RuntimeError(
            f"Lottery {lottery.id} has no launch to verify (status={lottery.status.value})."
        )

    draw = lottery.draw
    if draw.seed_hash_hex is None:
        raise RuntimeError(
            f"Lottery {lottery.id} was drawn by a non-hash source ({draw.entropy}); nothing to recompute."
        )

    total = len(lottery.players)
    if draw.bound != total:
        raise RuntimeError(f"Player count mismatch: draw={draw.bound} recorded={total}")

    index, seed_hash_hex, seed_int = compute_index(draw.entropy, total)
    if seed_hash_hex != draw.seed_hash_hex:
        raise RuntimeError(
            f"Seed hash mismatch: recorded={draw.seed_hash_hex} recomputed={seed_hash_hex}"
        )
    if index != draw.index:
        raise RuntimeError(f"Index mismatch: recorded={draw.index} recomputed={index}")

    winner = lottery.players[index]
    if winner != lottery.winner:
        raise RuntimeError(f"Winner mismatch: recorded={lottery.winner} recomputed={winner}")

    return {
        "ok": True,
        "lottery_id": lottery.id,
        "seed_hash_hex": seed_hash_hex,
        "seed_int": seed_int,
        "winner": winner,
        "winning_index": index,
        "total_players": total,
    }
