from __future__ import annotations

import json
import logging
import threading

import pytest

from xenrank.ledger.constants import SECONDS_IN_DAY
from xenrank.ledger.token import InMemoryTokenLedger
from xenrank.runtime import metrics
from xenrank.runtime.clock import ManualClock
from xenrank.runtime.errors import InvariantViolation
from xenrank.runtime.executor import ExecutorError, XenExecutor
from xenrank.runtime.state_invariants import check_state as real_check_state

DAY = SECONDS_IN_DAY


def _mk_executor(start_s: int = 0, **balances: int) -> tuple[XenExecutor, ManualClock]:
    token = InMemoryTokenLedger()
    for acct, amt in balances.items():
        token.credit(acct, amt)
    clock = ManualClock(start_s)
    return XenExecutor(token=token, clock=clock, engine_id="test"), clock


def test_manual_clock_only_moves_forward() -> None:
    c = ManualClock(10)
    assert c.advance(5) == 15
    c.set(20)
    assert c.now_seconds() == 20
    with pytest.raises(ValueError):
        c.set(19)
    with pytest.raises(ValueError):
        c.advance(-1)


def test_genesis_comes_from_clock_when_not_configured() -> None:
    ex, _ = _mk_executor(1_700_000_000)
    assert ex.dashboard()["genesis_ts"] == 1_700_000_000


def test_executor_needs_fresh_ledger_and_treasury() -> None:
    token = InMemoryTokenLedger()
    token.issue_authority()
    with pytest.raises(InvariantViolation):
        XenExecutor(token=token, clock=ManualClock(0))
    with pytest.raises(ExecutorError):
        XenExecutor(token=InMemoryTokenLedger(), clock=ManualClock(0), treasury_account=" ")


def test_full_lifecycle() -> None:
    ex, clock = _mk_executor()

    r = ex.claim_rank("alice", 10)
    assert r["ok"] is True
    assert r["seq"] == 1
    assert r["receipt"]["claim"]["rank"] == 0

    clock.advance(10 * DAY)
    r = ex.claim_mint_reward_stake("alice", 50, 30)
    assert r["ok"] is True
    staked = r["receipt"]["staked"]
    assert staked == 1_650_000_000_000
    assert ex.balance_of("alice") == 1_650_000_000_000

    clock.advance(30 * DAY)
    r = ex.withdraw("alice")
    assert r["ok"] is True
    expected = staked + staked * 200 * 30 // (1_000 * 365)
    assert r["receipt"]["payout"] == expected
    assert ex.balance_of("alice") == 1_650_000_000_000 + expected

    r = ex.burn("alice", 1_000)
    assert r["receipt"]["total_burned"] == 1_000

    dash = ex.dashboard()
    assert dash["active_minters"] == 0
    assert dash["active_stakes"] == 0
    assert dash["total_xen_staked"] == 0
    assert dash["user_burns"] == {"alice": 1_000}


def test_rejected_tx_leaves_state_untouched() -> None:
    ex, _ = _mk_executor()
    ex.claim_rank("alice", 10)
    before = ex.snapshot()

    r = ex.claim_rank("alice", 10)
    assert r["ok"] is False
    assert r["error"]["code"] == "claim_conflict"
    assert r["error"]["reason"] == "claim_already_open"
    assert ex.snapshot() == before

    r = ex.claim_mint_reward("alice")
    assert r["error"]["code"] == "maturity_not_reached"
    assert ex.snapshot() == before

    receipts = ex.recent_receipts(10)
    assert [x["ok"] for x in receipts] == [True, False, False]
    assert ex.recent_receipts(0) == []


def test_invariant_violation_propagates_and_discards_working_state(monkeypatch, caplog) -> None:
    ex, _ = _mk_executor()

    def _boom(_st):
        raise InvariantViolation("forced")

    monkeypatch.setattr("xenrank.runtime.executor.check_state", _boom)
    caplog.set_level(logging.ERROR, logger="xenrank.executor")

    with pytest.raises(InvariantViolation):
        ex.claim_rank("alice", 10)

    assert ex.dashboard()["global_rank"] == 0
    assert ex.mint_claim("alice") is None
    assert ex.recent_receipts() == []
    events = [json.loads(r.getMessage())["event"] for r in caplog.records if r.name == "xenrank.executor"]
    assert "invariant_violation" in events


def test_forced_violation_at_settlement_mints_nothing(monkeypatch) -> None:
    ex, clock = _mk_executor()
    ex.claim_rank("alice", 10)
    clock.advance(10 * DAY)

    def _boom(_st):
        raise InvariantViolation("forced")

    monkeypatch.setattr("xenrank.runtime.executor.check_state", _boom)
    with pytest.raises(InvariantViolation):
        ex.claim_mint_reward("alice")

    assert ex.balance_of("alice") == 0
    assert ex.balance_of(ex.treasury_account) == 0
    assert ex.mint_claim("alice")["status"] == "open"
    assert metrics.snapshot()["invariant_violations"] == 1

    monkeypatch.setattr("xenrank.runtime.executor.check_state", real_check_state)
    r = ex.claim_mint_reward("alice")
    assert r["ok"] is True
    assert ex.balance_of("alice") == 3_300_000_000_000
    assert ex.balance_of(ex.treasury_account) == 33_000_000_000


def test_ledger_refusing_a_committed_effect_is_a_violation(monkeypatch) -> None:
    ex, _ = _mk_executor()

    def _refuse(*_a, **_k):
        raise ValueError("ledger offline")

    monkeypatch.setattr(ex.token, "burn_from", _refuse)
    ex.token.credit("bob", 5)
    with pytest.raises(InvariantViolation):
        ex.burn("bob", 2)


def test_concurrent_claims_get_distinct_ranks() -> None:
    ex, _ = _mk_executor()
    out: list[int] = []
    out_lock = threading.Lock()

    def _worker(i: int) -> None:
        r = ex.claim_rank(f"acct{i}", 5)
        with out_lock:
            out.append(r["receipt"]["claim"]["rank"])

    threads = [threading.Thread(target=_worker, args=(i,)) for i in range(24)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(out) == list(range(24))
    assert ex.dashboard()["global_rank"] == 24
    assert ex.dashboard()["active_minters"] == 24


def test_events_are_logged_as_json_lines(caplog) -> None:
    caplog.set_level(logging.INFO, logger="xenrank.executor")
    ex, _ = _mk_executor(bob=5)
    ex.burn("bob", 10)
    ex.burn("bob", 2)

    events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "xenrank.executor"]
    kinds = [e["event"] for e in events]
    assert kinds == ["engine_boot", "tx_rejected", "tx_applied"]
    assert events[1]["code"] == "insufficient_balance"
    assert events[2]["tx_type"] == "BURN"


def test_metrics_follow_outcomes() -> None:
    ex, _ = _mk_executor()
    ex.claim_rank("alice", 10)
    ex.claim_rank("alice", 10)

    ex.burn("bob", 1)

    snap = metrics.snapshot()
    assert snap["applied"] == {"CLAIM_RANK": 1}
    assert snap["rejected"] == {
        "CLAIM_RANK": {"claim_conflict": 1},
        "BURN": {"insufficient_balance": 1},
    }
    assert snap["invariant_violations"] == 0
    assert snap["gauges"]["global_rank"] == 1
    assert snap["gauges"]["active_minters"] == 1


def test_params_and_quote_reads() -> None:
    ex, clock = _mk_executor()
    assert ex.params()["apy"] == 200
    ex.claim_rank("alice", 10)
    clock.advance(DAY)

    q = ex.quote("alice")
    assert q["now"] == DAY
    assert q["mint"]["reward_tokens"] == 33_000
    assert q["stake"] is None
