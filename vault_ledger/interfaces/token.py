"""Boolean-returning fungible token primitives."""
from typing import Protocol


class FungibleToken(Protocol):
    """Token whose mutating calls report success as a boolean.

    ``transfer`` moves funds out of the caller's own account (``sender``).
    """

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...
