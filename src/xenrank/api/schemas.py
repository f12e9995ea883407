from __future__ import annotations

"""Pydantic request schemas for the HTTP API.

These exist only for HTTP input validation; the engine re-checks every
precondition itself.
"""

from pydantic import BaseModel, Field


class AccountRequest(BaseModel):
    account: str = Field(..., min_length=1, description="Acting account id")


class ClaimRankRequest(AccountRequest):
    term: int = Field(..., description="Claim term in days")


class ClaimMintRewardStakeRequest(AccountRequest):
    pct: int = Field(..., description="Percent of the reward to stake (0-100)")
    term: int = Field(..., description="Stake term in days")


class StakeRequest(AccountRequest):
    amount: int = Field(..., description="Principal in base units")
    term: int = Field(..., description="Stake term in days")


class BurnRequest(AccountRequest):
    amount: int = Field(..., description="Amount to burn in base units")
