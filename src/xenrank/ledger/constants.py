# src/xenrank/ledger/constants.py
from __future__ import annotations

"""Emission and staking constants.

All values are integers. Amounts are in base units unless the name says
otherwise (1 token = TOKEN_UNIT base units); terms are in seconds unless
the name ends in _DAYS.
"""

# Token precision (1 token = 1e-8 units)
TOKEN_DECIMALS: int = 8
TOKEN_UNIT: int = 10**TOKEN_DECIMALS

SECONDS_IN_DAY: int = 3_600 * 24
DAYS_IN_YEAR: int = 365

# Terms (seconds). A term must be strictly greater than MIN_TERM, i.e. >= 1 day.
MIN_TERM: int = 1 * SECONDS_IN_DAY - 1
MAX_TERM_START: int = 100 * SECONDS_IN_DAY
MAX_TERM_END: int = 1_000 * SECONDS_IN_DAY
TERM_AMPLIFIER: int = 15
TERM_AMPLIFIER_THRESHOLD: int = 5_000

# Reward amplifier: -1 per elapsed day, -1 per SUPPLY_UNIT emitted
AMPLIFIER_START: int = 3_000
AMPLIFIER_END: int = 1
SUPPLY_UNIT: int = 10_000_000 * TOKEN_UNIT

# Early adopter amplifier (per-mille), -1 per EAA_RANK_STEP ranks
EAA_START: int = 100
EAA_PM_STEP: int = 1
EAA_RANK_STEP: int = 100_000
EAA_DENOM: int = 1_000

# Stake APY (per-mille): 20% falling by 1% every 90 days down to 2%
APY_START: int = 200
APY_END: int = 20
APY_STEP: int = 10
APY_DAYS_STEP: int = 90
APY_DENOM: int = 1_000

# Late settlement
WITHDRAWAL_WINDOW_DAYS: int = 7
MAX_PENALTY_PCT: int = 99

# Hard ceiling on the gross (pre-scaling) mint reward of a single claim
MAX_REWARD_CLAIM: int = 50_000_000_000

# No new rank claims once this much has been emitted through the engine
MAX_MINT_SUPPLY: int = 100_000_000_000 * TOKEN_UNIT

XEN_MIN_STAKE: int = 0
XEN_MIN_BURN: int = 0

# Protocol reserve minted to the treasury on every mint settlement
RESERVE_PCT: int = 1

TREASURY_ACCOUNT_ID: str = "TREASURY"
