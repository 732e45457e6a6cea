from __future__ import annotations

import argparse
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from .clock import ChainClock, Clock, SystemClock
from .config import Settings
from .entropy import HashRandomness, RandomnessSource
from .errors import LotteryError
from .events import event_to_dict
from .identity import is_address, load_addresses, parse_address
from .project_constants import PRICE_DECIMALS, PRICE_SCALE
from .registry import LotteryRegistry
from .rpc import RpcClient
from .store import LotteryStore
from .verify import verify_launch


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def to_units(raw_price: int) -> str:
    whole, frac = divmod(raw_price, PRICE_SCALE)
    if not frac:
        return str(whole)
    return f"{whole}.{str(frac).rjust(PRICE_DECIMALS, '0').rstrip('0')}"


def fmt_time(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def load_settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        rpc_url_override=args.rpc_url,
        state_file_override=args.state,
        caller_override=args.caller,
    )


def resolve_caller(settings: Settings) -> str:
    caller = settings.require_caller()
    if not is_address(caller):
        raise SystemExit(f"Caller {caller!r} is not a valid base58 address.")
    return caller


@contextmanager
def open_registry(args: argparse.Namespace, settings: Settings) -> Iterator[LotteryRegistry]:
    """
    Registry over the state file, with the clock/entropy sources the flags ask for.

    The state file stays locked until the block exits; save inside it.
    """
    rpc: Optional[RpcClient] = None
    if args.clock == "chain" or args.entropy == "chain":
        rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)

    clock: Clock = ChainClock(rpc) if args.clock == "chain" and rpc else SystemClock()
    randomness: RandomnessSource = (
        HashRandomness.from_rpc(rpc) if args.entropy == "chain" and rpc else HashRandomness()
    )
    try:
        with LotteryStore.locked(settings.state_file) as store:
            yield LotteryRegistry(store=store, randomness=randomness, clock=clock)
    finally:
        if rpc:
            rpc.close()


def cmd_create(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    caller = resolve_caller(settings)
    with open_registry(args, settings) as registry:
        if args.launch_at is not None:
            launch_at = args.launch_at
        else:
            launch_at = registry.clock.now() + args.launch_in
        lottery_id = registry.create_lottery(launch_at, args.price, caller)
        registry.store.save(settings.state_file)

    lottery = registry.get_lottery(lottery_id)
    print(f"Lottery       : {lottery.id}")
    print(f"Owner         : {lottery.owner}")
    print(f"Launch after  : {fmt_time(lottery.min_launch_date)}")
    print(f"Ticket price  : {to_units(lottery.ticket_price)} ({lottery.ticket_price} raw)")
    return 0


def cmd_buy(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    if args.buyers_file:
        buyers = load_addresses(args.buyers_file)
    else:
        buyers = [resolve_caller(settings)]

    with open_registry(args, settings) as registry:
        try:
            for buyer in buyers:
                registry.buy_ticket(args.id, buyer)
        finally:
            # Tickets bought before a failure are kept.
            registry.store.save(settings.state_file)

    lottery = registry.get_lottery(args.id)
    print(f"Tickets bought: {len(buyers)}")
    print(f"Total players : {len(lottery.players)}")
    return 0


def cmd_launch(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    caller = resolve_caller(settings)
    with open_registry(args, settings) as registry:
        winner = registry.launch_lottery(args.id, caller)
        registry.store.save(settings.state_file)

    lottery = registry.get_lottery(args.id)
    print("========================================")
    print(f"LOTTERY {lottery.id} LAUNCHED")
    print("========================================")
    print(f"Players       : {len(lottery.players)}")
    if lottery.draw and lottery.draw.seed_hash_hex:
        print(f"Seed SHA-256  : {lottery.draw.seed_hash_hex}")
    print("----------------------------------------")
    print(f"Winner        : {winner}")
    print(f"Winning index : {lottery.draw.index if lottery.draw else '?'}")
    return 0


def cmd_cancel(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    caller = resolve_caller(settings)
    with open_registry(args, settings) as registry:
        registry.cancel_lottery(args.id, caller)
        registry.store.save(settings.state_file)
    print(f"Lottery {args.id} cancelled.")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    store = LotteryStore.open(settings.state_file)
    lotteries = LotteryRegistry(store=store).get_lotteries()
    if not lotteries:
        print("No lotteries.")
        return 0
    for lottery in lotteries:
        print(
            f"#{lottery.id:<4} {lottery.status.value:<9} "
            f"players={len(lottery.players):<5} price={to_units(lottery.ticket_price):<10} "
            f"launch>={fmt_time(lottery.min_launch_date)} owner={lottery.owner}"
        )
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    registry = LotteryRegistry(store=LotteryStore.open(settings.state_file))
    print(json.dumps(registry.get_lottery(args.id).to_dict(), indent=2))
    return 0


def cmd_winner(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    registry = LotteryRegistry(store=LotteryStore.open(settings.state_file))
    winner = registry.get_winner(args.id)
    if winner is None:
        # Cancelled lotteries have no winner.
        status = registry.get_lottery(args.id).status.value
        print(f"Lottery {args.id} has no winner (status={status}).")
        return 0
    print(winner)
    return 0


def cmd_has_ticket(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    registry = LotteryRegistry(store=LotteryStore.open(settings.state_file))
    found = registry.is_user_in_lottery(args.id, args.user)
    print("yes" if found else "no")
    return 0 if found else 1


def cmd_verify(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    registry = LotteryRegistry(store=LotteryStore.open(settings.state_file))
    result = verify_launch(registry.get_lottery(args.id))
    print("✅ LAUNCH VERIFIED")
    print(f"Winner        : {result['winner']}")
    print(f"Winning index : {result['winning_index']}")
    print(f"Total players : {result['total_players']}")
    print(f"Seed SHA-256  : {result['seed_hash_hex']}")
    return 0


def cmd_events(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    store = LotteryStore.open(settings.state_file)
    for event in store.events:
        if args.id is not None and event.id != args.id:
            continue
        print(json.dumps(event_to_dict(event)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lottery-registry",
        description="Create, join, launch and cancel lotteries.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--state", default=None, help="State file path (else LOTTERY_STATE_FILE).")
    p.add_argument(
        "--caller",
        type=parse_address,
        default=None,
        help="Caller address (else LOTTERY_CALLER).",
    )
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")
    p.add_argument(
        "--entropy",
        choices=("local", "chain"),
        default="local",
        help="Environment value for winner selection: OS random bytes or latest blockhash.",
    )
    p.add_argument(
        "--clock",
        choices=("system", "chain"),
        default="system",
        help="Source of the current time: local clock or finalized block time.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("create", help="Create a lottery owned by the caller.")
    when = c.add_mutually_exclusive_group(required=True)
    when.add_argument("--launch-at", type=int, help="Earliest launch time (unix seconds).")
    when.add_argument("--launch-in", type=int, help="Earliest launch, seconds from now.")
    c.add_argument("--price", required=True, type=int, help="Ticket price in whole units.")
    c.set_defaults(func=cmd_create)

    b = sub.add_parser("buy", help="Buy a ticket as the caller.")
    b.add_argument("--id", required=True, type=int, help="Lottery id.")
    b.add_argument(
        "--buyers-file",
        default=None,
        help="Buy one ticket for each address in this file instead of the caller.",
    )
    b.set_defaults(func=cmd_buy)

    la = sub.add_parser("launch", help="Draw the winner (owner only).")
    la.add_argument("--id", required=True, type=int, help="Lottery id.")
    la.set_defaults(func=cmd_launch)

    ca = sub.add_parser("cancel", help="Cancel an active lottery (owner only).")
    ca.add_argument("--id", required=True, type=int, help="Lottery id.")
    ca.set_defaults(func=cmd_cancel)

    ls = sub.add_parser("list", help="List all lotteries.")
    ls.set_defaults(func=cmd_list)

    sh = sub.add_parser("show", help="Print one lottery as JSON.")
    sh.add_argument("--id", required=True, type=int, help="Lottery id.")
    sh.set_defaults(func=cmd_show)

    w = sub.add_parser("winner", help="Print the winner of a finished lottery.")
    w.add_argument("--id", required=True, type=int, help="Lottery id.")
    w.set_defaults(func=cmd_winner)

    h = sub.add_parser("has-ticket", help="Check whether an address holds a ticket.")
    h.add_argument("--id", required=True, type=int, help="Lottery id.")
    h.add_argument("--user", required=True, type=parse_address, help="Address to look up.")
    h.set_defaults(func=cmd_has_ticket)

    v = sub.add_parser("verify", help="Recompute a launch from its recorded entropy.")
    v.add_argument("--id", required=True, type=int, help="Lottery id.")
    v.set_defaults(func=cmd_verify)

    e = sub.add_parser("events", help="Print the event log as JSON lines.")
    e.add_argument("--id", type=int, default=None, help="Only events for this lottery.")
    e.set_defaults(func=cmd_events)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        code = args.func(args)
    except LotteryError as e:
        raise SystemExit(f"{e.code}: {e}")
    raise SystemExit(code)
