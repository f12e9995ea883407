# src/xenrank/ledger/token.py
from __future__ import annotations

"""External token ledger boundary.

The engine never stores balances. It talks to a TokenLedger:

  - balance_of(account) -> int
  - mint(authority, account, amount)
  - burn_from(authority, account, amount)
  - register(account) / is_registered(account)
  - total_minted_supply() -> Optional[int]

mint/burn_from require the MintBurnAuthority handed out once by
issue_authority(). InMemoryTokenLedger is the reference implementation used
by the executor in dev/testnet and by the tests.
"""

import threading
from typing import Dict, Optional

from xenrank.runtime.errors import InvariantViolation


class MintBurnAuthority:
    """Capability to inflate or deflate a specific ledger's supply.

    Instances are created only by TokenLedger.issue_authority() and cannot be
    copied.
    """

    __slots__ = ("_ledger_id",)

    def __init__(self, ledger_id: int) -> None:
        self._ledger_id = int(ledger_id)

    def __copy__(self) -> "MintBurnAuthority":
        raise TypeError("MintBurnAuthority cannot be copied")

    def __deepcopy__(self, memo: dict) -> "MintBurnAuthority":
        raise TypeError("MintBurnAuthority cannot be copied")

    def __reduce__(self):  # pragma: no cover
        raise TypeError("MintBurnAuthority cannot be pickled")

    def __repr__(self) -> str:
        return f"MintBurnAuthority(ledger={self._ledger_id:#x})"


class TokenLedger:
    """Interface of the external fungible-token ledger."""

    def issue_authority(self) -> MintBurnAuthority:
        raise NotImplementedError

    def balance_of(self, account: str) -> int:
        raise NotImplementedError

    def mint(self, authority: MintBurnAuthority, account: str, amount: int) -> None:
        raise NotImplementedError

    def burn_from(self, authority: MintBurnAuthority, account: str, amount: int) -> None:
        raise NotImplementedError

    def register(self, account: str) -> None:
        raise NotImplementedError

    def is_registered(self, account: str) -> bool:
        raise NotImplementedError

    def total_minted_supply(self) -> Optional[int]:
        raise NotImplementedError


class InMemoryTokenLedger(TokenLedger):
    """Process-local token ledger with a single mint/burn authority."""

    def __init__(self, *, track_supply: bool = True) -> None:
        self._lock = threading.Lock()
        self._balances: Dict[str, int] = {}
        self._registered: set[str] = set()
        self._supply = 0
        self._track_supply = bool(track_supply)
        self._authority: Optional[MintBurnAuthority] = None

    def issue_authority(self) -> MintBurnAuthority:
        with self._lock:
            if self._authority is not None:
                raise InvariantViolation("mint/burn authority already issued for this ledger")
            self._authority = MintBurnAuthority(id(self))
            return self._authority

    def _check_authority(self, authority: MintBurnAuthority) -> None:
        if self._authority is None or authority is not self._authority:
            raise InvariantViolation("mint/burn attempted without this ledger's authority")

    def balance_of(self, account: str) -> int:
        with self._lock:
            return int(self._balances.get(str(account), 0))

    def register(self, account: str) -> None:
        with self._lock:
            self._registered.add(str(account))

    def is_registered(self, account: str) -> bool:
        with self._lock:
            return str(account) in self._registered

    def mint(self, authority: MintBurnAuthority, account: str, amount: int) -> None:
        self._check_authority(authority)
        a = int(amount)
        if a < 0:
            raise ValueError(f"mint amount must be >= 0, got {a}")
        acct = str(account)
        with self._lock:
            if acct not in self._registered:
                raise ValueError(f"account {acct!r} is not registered")
            self._balances[acct] = int(self._balances.get(acct, 0)) + a
            self._supply += a

    def burn_from(self, authority: MintBurnAuthority, account: str, amount: int) -> None:
        self._check_authority(authority)
        a = int(amount)
        acct = str(account)
        with self._lock:
            bal = int(self._balances.get(acct, 0))
            if a < 0 or a > bal:
                raise ValueError(f"cannot burn {a} from {acct!r} (balance {bal})")
            self._balances[acct] = bal - a
            self._supply -= a

    def credit(self, account: str, amount: int) -> None:
        """Seed an externally pre-minted balance (genesis allocations, tests)."""
        acct = str(account)
        with self._lock:
            self._registered.add(acct)
            self._balances[acct] = int(self._balances.get(acct, 0)) + int(amount)
            self._supply += int(amount)

    def total_minted_supply(self) -> Optional[int]:
        if not self._track_supply:
            return None
        with self._lock:
            return int(self._supply)


__all__ = ["InMemoryTokenLedger", "MintBurnAuthority", "TokenLedger"]
