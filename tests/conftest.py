from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

# Ensure local "src/" takes precedence over any globally-installed "xenrank" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from xenrank.ledger.state import EngineState  # noqa: E402
from xenrank.ledger.token import InMemoryTokenLedger, MintBurnAuthority  # noqa: E402
from xenrank.runtime import metrics  # noqa: E402
from xenrank.runtime.apply.context import ApplyContext  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    metrics.reset()


@pytest.fixture
def token() -> InMemoryTokenLedger:
    return InMemoryTokenLedger()


@pytest.fixture
def authority(token: InMemoryTokenLedger) -> MintBurnAuthority:
    return token.issue_authority()


@pytest.fixture
def state() -> EngineState:
    # genesis at unix 0 keeps maturity arithmetic readable
    return EngineState.genesis(0)


@pytest.fixture
def mk_ctx(token: InMemoryTokenLedger, authority: MintBurnAuthority) -> Callable[[int], ApplyContext]:
    def _mk(now_s: int) -> ApplyContext:
        return ApplyContext(token=token, authority=authority, now_s=int(now_s))

    return _mk
