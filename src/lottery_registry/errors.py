from __future__ import annotations

from typing import Optional


class LotteryError(RuntimeError):
    """Base class for rejected registry operations. Nothing is mutated when raised."""

    code = "LotteryError"

    def __init__(self, message: str, lottery_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.lottery_id = lottery_id


class InvalidLaunchDate(LotteryError):
    code = "InvalidLaunchDate"


class InvalidTicketPrice(LotteryError):
    code = "InvalidTicketPrice"


class LotteryNotFound(LotteryError):
    code = "LotteryNotFound"


class LotteryNotActive(LotteryError):
    code = "LotteryNotActive"


class NotOwner(LotteryError):
    code = "NotOwner"


class MinimumDateNotReached(LotteryError):
    code = "MinimumDateNotReached"


class NoParticipants(LotteryError):
    code = "NoParticipants"


class LotteryStillActive(LotteryError):
    code = "LotteryStillActive"
