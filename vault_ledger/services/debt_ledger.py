"""Per-user, per-token principal and accrued interest."""
from __future__ import annotations

import logging
from typing import Final

from ..errors import CapacityExceeded, RepayExceedsDebt
from ..fixed_point import checked_add, checked_sub
from ..models import LedgerState, TokenDebt, UserPosition
from .borrow_index import BorrowIndexLedger

logger = logging.getLogger(__name__)

MAX_BORROWED_TOKENS: Final[int] = 8


class UserDebtLedger:
    """Moves index growth into ``accrued_interest``; principal only moves on borrow/repay."""

    def __init__(self, index_ledger: BorrowIndexLedger) -> None:
        self.index_ledger = index_ledger

    def accrue_interest(self, state: LedgerState, user: str, now: int) -> None:
        position = state.position(user)
        for token in position.borrowed_tokens:
            index = self.index_ledger.update_index(state, token, now)
            debt = position.debts[token]
            new_debt = self.index_ledger.current_debt(state, user, token)
            debt.accrued_interest = checked_add(
                debt.accrued_interest, new_debt - debt.principal
            )
            debt.borrow_index_snapshot = index
        position.last_update_time = now

    def outstanding_debt(self, state: LedgerState, user: str, token: str) -> int:
        """Index-scaled principal plus interest already moved to the accumulator."""
        position = state.positions.get(user)
        if position is None or token not in position.debts:
            return 0
        return (
            self.index_ledger.current_debt(state, user, token)
            + position.debts[token].accrued_interest
        )

    def projected_debt(self, state: LedgerState, user: str, token: str, now: int) -> int:
        """Outstanding debt as if the index were updated to ``now``; writes nothing."""
        position = state.positions.get(user)
        if position is None or token not in position.debts:
            return 0
        debt = position.debts[token]
        index = self.index_ledger.projected_index(state, token, now)
        return (
            self.index_ledger.debt_at_index(debt.principal, debt.borrow_index_snapshot, index)
            + debt.accrued_interest
        )

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _register(position: UserPosition, token: str, index: int) -> TokenDebt:
        if len(position.borrowed_tokens) >= MAX_BORROWED_TOKENS:
            raise CapacityExceeded(
                f"At most {MAX_BORROWED_TOKENS} borrowed tokens per position"
            )
        debt = position.debts.get(token)
        if debt is None:
            debt = TokenDebt()
            position.debts[token] = debt
        debt.borrow_index_snapshot = index
        position.borrowed_tokens.append(token)
        position.is_borrowed[token] = True
        return debt

    def record_borrow(self, state: LedgerState, user: str, token: str, amount: int) -> None:
        position = state.position(user)
        if not position.is_borrowed.get(token, False):
            debt = self._register(position, token, state.tokens[token].borrow_index)
        else:
            debt = position.debts[token]
        debt.principal = checked_add(debt.principal, amount)
        token_state = state.tokens[token]
        token_state.total_borrows_principal = checked_add(
            token_state.total_borrows_principal, amount
        )

    def record_repay(self, state: LedgerState, user: str, token: str, amount: int) -> int:
        """Apply ``amount`` to interest first, then principal.

        Returns the principal portion repaid.
        """
        outstanding = self.outstanding_debt(state, user, token)
        if amount > outstanding:
            raise RepayExceedsDebt(
                f"Repay {amount} exceeds outstanding {token} debt {outstanding}"
            )

        position = state.position(user)
        debt = position.debts[token]
        to_interest = min(amount, debt.accrued_interest)
        debt.accrued_interest -= to_interest
        to_principal = amount - to_interest
        debt.principal = checked_sub(debt.principal, to_principal)

        token_state = state.tokens[token]
        # Borrows track principal only; accrued interest never enters the total.
        token_state.total_borrows_principal -= min(
            to_principal, token_state.total_borrows_principal
        )

        if self.outstanding_debt(state, user, token) == 0:
            position.borrowed_tokens.remove(token)
            position.is_borrowed[token] = False
            debt.borrow_index_snapshot = 0
            logger.debug("%s fully repaid %s", user, token)
        return to_principal
