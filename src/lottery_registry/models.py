from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


class LotteryStatus(str, enum.Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LotteryStatus.ACTIVE


@dataclass(frozen=True)
class Draw:
    """Receipt of a winner selection, kept so the launch can be re-checked later."""

    index: int
    bound: int
    entropy: str
    seed_hash_hex: Optional[str] = None  # None for sources that don't hash their input

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "bound": self.bound,
            "entropy": self.entropy,
            "seed_hash_hex": self.seed_hash_hex,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Draw":
        return Draw(
            index=int(data["index"]),
            bound=int(data["bound"]),
            entropy=str(data["entropy"]),
            seed_hash_hex=data.get("seed_hash_hex"),
        )


@dataclass
class Lottery:
    id: int
    owner: str
    min_launch_date: int
    ticket_price: int
    players: List[str] = field(default_factory=list)
    winner: Optional[str] = None
    status: LotteryStatus = LotteryStatus.ACTIVE
    draw: Optional[Draw] = None

    @property
    def is_active(self) -> bool:
        return self.status is LotteryStatus.ACTIVE

    def snapshot(self) -> "Lottery":
        return replace(self, players=list(self.players))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "min_launch_date": self.min_launch_date,
            "ticket_price": str(self.ticket_price),  # big int; store as string for safety
            "players": list(self.players),
            "winner": self.winner,
            "status": self.status.value,
            "draw": self.draw.to_dict() if self.draw else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Lottery":
        draw = data.get("draw")
        return Lottery(
            id=int(data["id"]),
            owner=data["owner"],
            min_launch_date=int(data["min_launch_date"]),
            ticket_price=int(data["ticket_price"]),
            players=list(data.get("players", [])),
            winner=data.get("winner"),
            status=LotteryStatus(data.get("status", LotteryStatus.ACTIVE.value)),
            draw=Draw.from_dict(draw) if draw else None,
        )
