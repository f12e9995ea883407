from __future__ import annotations

import pytest

from xenrank.ledger.constants import SECONDS_IN_DAY
from xenrank.runtime.apply.burns import burn
from xenrank.runtime.apply.staking import stake, withdraw
from xenrank.runtime.errors import InsufficientBalance, InvalidAmount, InvalidTerm, StakeConflict
from xenrank.runtime.state_invariants import check_state

DAY = SECONDS_IN_DAY


def test_stake_burns_principal_and_opens_position(state, mk_ctx, token) -> None:
    token.credit("alice", 1_000)
    out = stake(state, mk_ctx(0), "alice", 100, 10)

    assert out["stake"]["amount"] == 100
    assert out["stake"]["maturity_ts"] == 10 * DAY
    assert out["stake"]["apy"] == 200
    assert token.balance_of("alice") == 900
    assert state.dashboard.total_xen_staked == 100
    assert state.dashboard.active_stakes == 1
    check_state(state)


def test_early_withdraw_returns_principal_only(state, mk_ctx, token) -> None:
    token.credit("alice", 1_000)
    stake(state, mk_ctx(0), "alice", 100, 10)

    out = withdraw(state, mk_ctx(5), "alice")
    assert out == {
        "applied": "WITHDRAW",
        "account": "alice",
        "principal": 100,
        "reward": 0,
        "payout": 100,
        "matured": False,
    }
    assert token.balance_of("alice") == 1_000
    assert state.dashboard.total_xen_staked == 0
    assert state.dashboard.active_stakes == 0
    check_state(state)


def test_matured_withdraw_pays_yield(state, mk_ctx, token) -> None:
    token.credit("alice", 1_000_000)
    stake(state, mk_ctx(0), "alice", 1_000_000, 365)

    out = withdraw(state, mk_ctx(365 * DAY), "alice")
    assert out["payout"] == 1_200_000
    assert out["reward"] == 200_000
    assert out["matured"] is True
    assert token.balance_of("alice") == 1_200_000
    assert state.dashboard.total_supply == 1_200_000


def test_staked_total_tracks_open_positions(state, mk_ctx, token) -> None:
    for acct, amt in (("a", 10), ("b", 20), ("c", 30)):
        token.credit(acct, amt)
        stake(state, mk_ctx(0), acct, amt, 5)
    assert state.dashboard.total_xen_staked == 60

    withdraw(state, mk_ctx(1), "b")
    assert state.dashboard.total_xen_staked == 40
    assert state.dashboard.active_stakes == 2
    check_state(state)


def test_stake_supply_reduction_floors_at_zero(state, mk_ctx, token) -> None:
    token.credit("alice", 500)
    state.dashboard.total_supply = 100
    stake(state, mk_ctx(0), "alice", 300, 5)
    assert state.dashboard.total_supply == 0


def test_stake_rejections(state, mk_ctx, token) -> None:
    token.credit("alice", 100)
    ctx = mk_ctx(0)

    with pytest.raises(InvalidAmount):
        stake(state, ctx, "alice", 0, 10)
    with pytest.raises(InvalidTerm):
        stake(state, ctx, "alice", 10, 0)
    with pytest.raises(InvalidTerm):
        stake(state, ctx, "alice", 10, 1_001)
    with pytest.raises(InsufficientBalance):
        stake(state, ctx, "alice", 101, 10)

    # stake terms are not bound by the rank-claim cap
    stake(state, ctx, "alice", 10, 1_000)
    with pytest.raises(StakeConflict) as ei:
        stake(state, ctx, "alice", 10, 10)
    assert ei.value.reason == "stake_already_open"
    assert token.balance_of("alice") == 90


def test_withdraw_rejections(state, mk_ctx, token) -> None:
    with pytest.raises(StakeConflict) as ei:
        withdraw(state, mk_ctx(0), "alice")
    assert ei.value.reason == "no_stake_position"

    token.credit("alice", 10)
    stake(state, mk_ctx(0), "alice", 10, 1)
    withdraw(state, mk_ctx(1), "alice")
    with pytest.raises(StakeConflict) as ei:
        withdraw(state, mk_ctx(2), "alice")
    assert ei.value.reason == "position_already_empty"


def test_restake_after_withdraw(state, mk_ctx, token) -> None:
    token.credit("alice", 10)
    stake(state, mk_ctx(0), "alice", 10, 1)
    withdraw(state, mk_ctx(1), "alice")
    stake(state, mk_ctx(2), "alice", 10, 2)
    assert state.open_stake("alice") is not None


def test_burn_records_per_account_total(state, mk_ctx, token) -> None:
    token.credit("alice", 100)
    assert burn(state, mk_ctx(0), "alice", 30)["total_burned"] == 30
    assert burn(state, mk_ctx(0), "alice", 20)["total_burned"] == 50
    assert token.balance_of("alice") == 50
    assert state.dashboard.user_burns == {"alice": 50}
    # burns never touch rank or staking counters
    assert state.dashboard.global_rank == 0
    assert state.dashboard.total_xen_staked == 0


def test_burn_rejections(state, mk_ctx, token) -> None:
    token.credit("alice", 10)
    with pytest.raises(InvalidAmount):
        burn(state, mk_ctx(0), "alice", 0)
    with pytest.raises(InsufficientBalance):
        burn(state, mk_ctx(0), "alice", 11)
    assert state.dashboard.user_burns == {}
    assert token.balance_of("alice") == 10
