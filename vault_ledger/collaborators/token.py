"""In-memory fungible token with allowance semantics."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Minimal token ledger. Failed calls return False and change nothing."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.total_supply = 0

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        self.balances[account] = self.balance_of(account) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(account) < amount:
            return False
        self.balances[account] -= amount
        self.total_supply -= amount
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug("%s transfer of %d from %s refused", self.symbol, amount, sender)
            return False
        self.balances[sender] -= amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            return False
        if not self._move(owner, recipient, amount):
            return False
        self.allowances[(owner, spender)] = allowed - amount
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        self.allowances[(owner, spender)] = amount
        return True
