from __future__ import annotations

import logging
from typing import List, Optional

from .clock import Clock, SystemClock
from .entropy import HashRandomness, RandomnessSource
from .errors import (
    InvalidLaunchDate,
    InvalidTicketPrice,
    LotteryError,
    LotteryNotActive,
    LotteryNotFound,
    LotteryStillActive,
    MinimumDateNotReached,
    NoParticipants,
    NotOwner,
)
from .events import Event, Listener, LotteryCreated, LotteryLaunched, TicketPurchased
from .models import Lottery, LotteryStatus
from .project_constants import PRICE_SCALE
from .store import LotteryStore

logger = logging.getLogger(__name__)


class LotteryRegistry:
    """
    Create, join, launch and cancel lotteries.

    Each operation runs under the store lock and either applies all of its
    effects or raises a LotteryError having changed nothing. Notifications
    go out after the lock is released.
    """

    def __init__(
        self,
        store: Optional[LotteryStore] = None,
        randomness: Optional[RandomnessSource] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store if store is not None else LotteryStore()
        self.randomness = randomness or HashRandomness()
        self.clock = clock or SystemClock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    @property
    def lottery_count(self) -> int:
        with self.store.lock:
            return self.store.lottery_count

    # -- mutations --------------------------------------------------------

    def create_lottery(self, min_launch_date: int, ticket_price_units: int, caller: str) -> int:
        with self.store.lock:
            now = self.clock.now()
            if min_launch_date <= now:
                raise self._reject(
                    InvalidLaunchDate(
                        f"Launch date {min_launch_date} must be after current time {now}"
                    )
                )
            if ticket_price_units <= 0:
                raise self._reject(InvalidTicketPrice("Ticket price must be greater than zero"))

            lottery = Lottery(
                id=self.store.allocate_id(),
                owner=caller,
                min_launch_date=int(min_launch_date),
                ticket_price=int(ticket_price_units) * PRICE_SCALE,
            )
            self.store.insert(lottery)
            event = LotteryCreated(
                id=lottery.id,
                owner=caller,
                min_launch_date=lottery.min_launch_date,
                ticket_price=lottery.ticket_price,
            )
            self.store.record(event)

        logger.info(
            "Lottery %d created by %s (launch >= %d, price %d)",
            lottery.id,
            caller,
            lottery.min_launch_date,
            lottery.ticket_price,
        )
        self._emit(event)
        return lottery.id

    def buy_ticket(self, lottery_id: int, caller: str) -> None:
        with self.store.lock:
            lottery = self._require(lottery_id)
            if lottery.status.is_terminal:
                raise self._reject(
                    LotteryNotActive(f"Lottery {lottery_id} is {lottery.status.value}", lottery_id)
                )
            lottery.players.append(caller)
            event = TicketPurchased(id=lottery_id, buyer=caller)
            self.store.record(event)
            count = len(lottery.players)

        logger.info("Ticket %d bought in lottery %d by %s", count, lottery_id, caller)
        self._emit(event)

    def launch_lottery(self, lottery_id: int, caller: str) -> str:
        with self.store.lock:
            lottery = self._require_owner(lottery_id, caller, "launch")
            if lottery.status.is_terminal:
                raise self._reject(
                    LotteryNotActive(f"Lottery {lottery_id} is {lottery.status.value}", lottery_id)
                )
            now = self.clock.now()
            if now < lottery.min_launch_date:
                raise self._reject(
                    MinimumDateNotReached(
                        f"Lottery {lottery_id} cannot launch before {lottery.min_launch_date} (now {now})",
                        lottery_id,
                    )
                )
            if not lottery.players:
                raise self._reject(NoParticipants(f"Lottery {lottery_id} has no players", lottery_id))

            draw = self.randomness.draw(len(lottery.players), timestamp=now, caller=caller)
            if not 0 <= draw.index < len(lottery.players):
                raise RuntimeError(
                    f"Randomness source returned index {draw.index} outside [0, {len(lottery.players)})"
                )

            lottery.winner = lottery.players[draw.index]
            lottery.draw = draw
            lottery.status = LotteryStatus.CLOSED
            event = LotteryLaunched(id=lottery_id, winner=lottery.winner)
            self.store.record(event)

        logger.info(
            "Lottery %d launched: winner %s (index %d of %d)",
            lottery_id,
            event.winner,
            draw.index,
            draw.bound,
        )
        self._emit(event)
        return event.winner

    def cancel_lottery(self, lottery_id: int, caller: str) -> None:
        with self.store.lock:
            lottery = self._require_owner(lottery_id, caller, "cancel")
            if lottery.status.is_terminal:
                raise self._reject(
                    LotteryNotActive(f"Lottery {lottery_id} is {lottery.status.value}", lottery_id)
                )
            lottery.status = LotteryStatus.CANCELLED

        # No notification is defined for cancellation.
        logger.info("Lottery %d cancelled by %s", lottery_id, caller)

    # -- queries ----------------------------------------------------------

    def get_lotteries(self) -> List[Lottery]:
        with self.store.lock:
            return [lottery.snapshot() for lottery in self.store.all()]

    def get_lottery(self, lottery_id: int) -> Lottery:
        with self.store.lock:
            return self._require(lottery_id).snapshot()

    def is_user_in_lottery(self, lottery_id: int, user: str) -> bool:
        with self.store.lock:
            return user in self._require(lottery_id).players

    def get_winner(self, lottery_id: int) -> Optional[str]:
        """Winner of a closed lottery; None when it was cancelled."""
        with self.store.lock:
            lottery = self._require(lottery_id)
            if lottery.is_active:
                raise self._reject(
                    LotteryStillActive(f"Lottery {lottery_id} is still active", lottery_id)
                )
            return lottery.winner

    # -- helpers ----------------------------------------------------------

    def _require(self, lottery_id: int) -> Lottery:
        lottery = self.store.get(lottery_id)
        if lottery is None:
            raise self._reject(LotteryNotFound(f"Lottery {lottery_id} does not exist", lottery_id))
        return lottery

    def _require_owner(self, lottery_id: int, caller: str, action: str) -> Lottery:
        # An unallocated id has no owner, so it fails the ownership check.
        lottery = self.store.get(lottery_id)
        if lottery is None or caller != lottery.owner:
            raise self._reject(
                NotOwner(f"Only the owner can {action} lottery {lottery_id}", lottery_id)
            )
        return lottery

    @staticmethod
    def _reject(error: LotteryError) -> LotteryError:
        logger.debug("Rejected (%s): %s", error.code, error)
        return error

    def _emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, type(event).__name__)
