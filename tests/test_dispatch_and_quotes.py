from __future__ import annotations

import pytest

from xenrank.ledger.constants import SECONDS_IN_DAY
from xenrank.runtime.domain_dispatch import SUPPORTED_TX_TYPES, apply_tx
from xenrank.runtime.errors import ApplyError, InvalidPayload
from xenrank.runtime.quotes import current_params, quote_mint_reward, quote_stake_reward
from xenrank.runtime.tx_admission_types import TxEnvelope

DAY = SECONDS_IN_DAY


def _env(tx_type: str, signer: str = "alice", **payload) -> dict:
    return {"tx_type": tx_type, "signer": signer, "payload": payload}


def test_supported_tx_types() -> None:
    assert SUPPORTED_TX_TYPES == {
        "CLAIM_RANK",
        "CLAIM_MINT_REWARD",
        "CLAIM_MINT_REWARD_STAKE",
        "STAKE",
        "WITHDRAW",
        "BURN",
    }


def test_dispatch_accepts_dicts_and_envelopes(state, mk_ctx) -> None:
    r1 = apply_tx(state, _env("claim_rank", term=3), mk_ctx(0))
    assert r1["applied"] == "CLAIM_RANK"

    r2 = apply_tx(state, TxEnvelope("CLAIM_RANK", "bob", {"term": 3}), mk_ctx(0))
    assert r2["claim"]["rank"] == 1


def test_dispatch_rejects_malformed_envelopes(state, mk_ctx) -> None:
    ctx = mk_ctx(0)

    with pytest.raises(ApplyError) as ei:
        apply_tx(state, 42, ctx)
    assert (ei.value.code, ei.value.reason) == ("invalid_payload", "bad_envelope")

    with pytest.raises(ApplyError) as ei:
        apply_tx(state, _env(""), ctx)
    assert ei.value.reason == "missing_tx_type"

    with pytest.raises(ApplyError) as ei:
        apply_tx(state, _env("BURN", signer=" ", amount=1), ctx)
    assert ei.value.reason == "missing_signer"

    with pytest.raises(ApplyError) as ei:
        apply_tx(state, _env("TRANSFER", amount=1), ctx)
    assert (ei.value.code, ei.value.reason) == ("invalid_tx_type", "unsupported_tx_type")

    with pytest.raises(TypeError):
        apply_tx({"dashboard": {}}, _env("BURN", amount=1), ctx)


@pytest.mark.parametrize("term", [None, "abc", True, 1.5])
def test_dispatch_rejects_non_integer_fields(state, mk_ctx, term) -> None:
    with pytest.raises(InvalidPayload) as ei:
        apply_tx(state, _env("CLAIM_RANK", term=term), mk_ctx(0))
    assert ei.value.reason == "bad_term"
    assert state.dashboard.global_rank == 0


def test_integral_float_and_numeric_string_fields_are_accepted(state, mk_ctx) -> None:
    apply_tx(state, _env("CLAIM_RANK", term=2.0), mk_ctx(0))
    apply_tx(state, _env("CLAIM_RANK", signer="bob", term="2"), mk_ctx(0))
    assert state.dashboard.global_rank == 2


def test_current_params_at_genesis(state) -> None:
    p = current_params(state, 0, 0)
    assert p == {
        "now": 0,
        "global_rank": 0,
        "amplifier": 3_000,
        "eaa_rate": 100,
        "apy": 200,
        "max_term_days": 100,
    }


def test_mint_quote_before_and_after_maturity(state, mk_ctx) -> None:
    assert quote_mint_reward(state, "alice", 0) is None
    apply_tx(state, _env("CLAIM_RANK", term=10), mk_ctx(0))

    early = quote_mint_reward(state, "alice", 100)
    assert early["matured"] is False
    assert early["penalty_pct"] == 0
    assert early["reward_tokens"] == 33_000

    late = quote_mint_reward(state, "alice", 12 * DAY)
    assert late["matured"] is True
    assert late["penalty_pct"] == 3
    assert late["reward_tokens"] == 32_010

    # quoting changes nothing
    assert state.open_mint("alice") is not None


def test_stake_quote(state, mk_ctx, token) -> None:
    assert quote_stake_reward(state, "alice", 0) is None
    token.credit("alice", 1_000_000)
    apply_tx(state, _env("STAKE", amount=1_000_000, term=365), mk_ctx(0))

    q = quote_stake_reward(state, "alice", 10)
    assert (q["matured"], q["payout"]) == (False, 1_000_000)
    q = quote_stake_reward(state, "alice", 365 * DAY)
    assert (q["matured"], q["payout"]) == (True, 1_200_000)


def test_envelope_drops_unknown_ordering_fields() -> None:
    env = TxEnvelope.from_json({"tx_type": "BURN", "signer": "alice", "nonce": 7, "payload": {"amount": 1}})
    assert env.to_json() == {"tx_type": "BURN", "signer": "alice", "payload": {"amount": 1}}
