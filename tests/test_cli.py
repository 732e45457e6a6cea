"""End-to-end tests for the command line over a state file."""

from __future__ import annotations

import json

import pytest

from lottery_registry import cli
from lottery_registry.clock import FixedClock
from lottery_registry.store import LotteryStore

from conftest import NOW


@pytest.fixture
def cli_clock(monkeypatch):
    clock = FixedClock(NOW)
    monkeypatch.setattr(cli, "SystemClock", lambda: clock)
    for name in ("RPC_URL", "LOTTERY_STATE_FILE", "LOTTERY_CALLER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("lottery_registry.config.load_dotenv", lambda: False)
    return clock


@pytest.fixture
def run(tmp_path, cli_clock):
    state = str(tmp_path / "state.json")

    def _run(*argv, caller=None):
        args = ["--state", state]
        if caller:
            args += ["--caller", caller]
        with pytest.raises(SystemExit) as exc:
            cli.main(args + list(argv))
        return exc.value.code

    _run.state = state
    return _run


def test_full_cycle(run, cli_clock, capsys, owner, alice, bob):
    assert run("create", "--launch-in", "100", "--price", "2", caller=owner) == 0
    out = capsys.readouterr().out
    assert "Lottery       : 1" in out
    assert "Ticket price  : 2 (2000000000 raw)" in out

    assert run("buy", "--id", "1", caller=alice) == 0
    assert run("buy", "--id", "1", caller=bob) == 0
    capsys.readouterr()

    cli_clock.advance(100)
    assert run("launch", "--id", "1", caller=owner) == 0
    out = capsys.readouterr().out
    assert "LOTTERY 1 LAUNCHED" in out

    store = LotteryStore.load(run.state)
    lottery = store.get(1)
    assert lottery.winner in (alice, bob)

    assert run("winner", "--id", "1") == 0
    assert capsys.readouterr().out.strip() == lottery.winner

    assert run("verify", "--id", "1") == 0
    assert "LAUNCH VERIFIED" in capsys.readouterr().out

    assert run("events", "--id", "1") == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [e["event"] for e in lines] == [
        "LotteryCreated",
        "TicketPurchased",
        "TicketPurchased",
        "LotteryLaunched",
    ]


def test_lottery_errors_exit_with_code(run, owner, alice):
    assert run("create", "--launch-in", "100", "--price", "1", caller=owner) == 0
    code = run("launch", "--id", "1", caller=alice)
    assert isinstance(code, str)
    assert code.startswith("NotOwner:")

    code = run("launch", "--id", "1", caller=owner)
    assert code.startswith("MinimumDateNotReached:")


def test_invalid_launch_date(run, owner):
    code = run("create", "--launch-at", str(NOW), "--price", "1", caller=owner)
    assert code.startswith("InvalidLaunchDate:")
    assert LotteryStore.open(run.state).lottery_count == 0


def test_cancel_then_winner_reports_none(run, capsys, owner):
    run("create", "--launch-in", "10", "--price", "1", caller=owner)
    assert run("cancel", "--id", "1", caller=owner) == 0
    capsys.readouterr()
    assert run("winner", "--id", "1") == 0
    assert "no winner (status=Cancelled)" in capsys.readouterr().out


def test_winner_of_active_lottery(run, owner):
    run("create", "--launch-in", "10", "--price", "1", caller=owner)
    assert run("winner", "--id", "1").startswith("LotteryStillActive:")


def test_has_ticket(run, capsys, owner, alice, bob):
    run("create", "--launch-in", "10", "--price", "1", caller=owner)
    run("buy", "--id", "1", caller=alice)
    capsys.readouterr()
    assert run("has-ticket", "--id", "1", "--user", alice) == 0
    assert capsys.readouterr().out.strip() == "yes"
    assert run("has-ticket", "--id", "1", "--user", bob) == 1
    assert capsys.readouterr().out.strip() == "no"


def test_buyers_file(run, tmp_path, owner, alice, bob):
    run("create", "--launch-in", "10", "--price", "1", caller=owner)
    buyers = tmp_path / "buyers.txt"
    buyers.write_text(f"{alice}\n{bob}\n{alice}\n", encoding="utf-8")
    assert run("buy", "--id", "1", "--buyers-file", str(buyers)) == 0
    assert LotteryStore.load(run.state).get(1).players == [alice, bob, alice]


def test_list_and_show(run, capsys, owner):
    run("create", "--launch-in", "10", "--price", "1", caller=owner)
    run("create", "--launch-in", "20", "--price", "3", caller=owner)
    capsys.readouterr()
    assert run("list") == 0
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert out[0].startswith("#1")
    assert "Active" in out[1]

    assert run("show", "--id", "2") == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["ticket_price"] == "3000000000"
    assert shown["status"] == "Active"


def test_missing_caller(run):
    with pytest.raises(RuntimeError, match="caller"):
        run("create", "--launch-in", "10", "--price", "1")


def test_invalid_caller_rejected_by_parser(run):
    # argparse exits with status 2 on a bad --caller
    assert run("list", caller="not-base58-0OIl") == 2


def test_chain_entropy_needs_rpc_url(run, owner):
    with pytest.raises(RuntimeError, match="RPC_URL"):
        run("--entropy", "chain", "create", "--launch-in", "10", "--price", "1", caller=owner)


def test_to_units():
    assert cli.to_units(2_000_000_000) == "2"
    assert cli.to_units(1_500_000_000) == "1.5"
    assert cli.to_units(1) == "0.000000001"


def test_launch_unknown_id_is_not_owner(run, owner):
    assert run("launch", "--id", "9", caller=owner).startswith("NotOwner:")
    assert run("cancel", "--id", "9", caller=owner).startswith("NotOwner:")
