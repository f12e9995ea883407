"""xenrank: deterministic rank-claim emission and staking engine."""

__version__ = "0.1.0"
