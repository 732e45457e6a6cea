from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Union


@dataclass(frozen=True)
class LotteryCreated:
    id: int
    owner: str
    min_launch_date: int
    ticket_price: int


@dataclass(frozen=True)
class TicketPurchased:
    id: int
    buyer: str


@dataclass(frozen=True)
class LotteryLaunched:
    id: int
    winner: str


Event = Union[LotteryCreated, TicketPurchased, LotteryLaunched]
Listener = Callable[[Event], None]

EVENT_TYPES = {cls.__name__: cls for cls in (LotteryCreated, TicketPurchased, LotteryLaunched)}


def event_to_dict(event: Event) -> Dict[str, Any]:
    data = asdict(event)
    if isinstance(event, LotteryCreated):
        data["ticket_price"] = str(event.ticket_price)
    return {"event": type(event).__name__, **data}


def event_from_dict(data: Dict[str, Any]) -> Event:
    fields = dict(data)
    name = fields.pop("event", None)
    cls = EVENT_TYPES.get(name)
    if cls is None:
        raise RuntimeError(f"Unknown event type in log: {name!r}")
    if cls is LotteryCreated:
        fields["ticket_price"] = int(fields["ticket_price"])
    return cls(**fields)
