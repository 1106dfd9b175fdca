"""Per-token cumulative borrow index, updated lazily."""
from __future__ import annotations

import logging

from ..errors import InvalidState
from ..fixed_point import SCALE, SECONDS_PER_YEAR, mul_div
from ..models import LedgerState, TokenState
from .interest_rate import InterestRateModel

logger = logging.getLogger(__name__)


class BorrowIndexLedger:
    """Simple interest between updates, compounded across updates.

    Each call multiplies the index by ``1 + rate * elapsed / year``. Closer
    to continuous compounding only as calls become more frequent.
    """

    def __init__(self, rate_model: InterestRateModel) -> None:
        self.rate_model = rate_model

    def growth_factor(self, token: str, token_state: TokenState, now: int) -> int:
        elapsed = now - token_state.last_index_update_time
        if elapsed < 0:
            raise InvalidState(
                f"Clock went backwards for {token}: {now} < "
                f"{token_state.last_index_update_time}"
            )
        if elapsed == 0:
            return SCALE
        rate = self.rate_model.borrow_rate(token, token_state)
        return SCALE + mul_div(rate, elapsed, SECONDS_PER_YEAR)

    def projected_index(self, state: LedgerState, token: str, now: int) -> int:
        """Index as of ``now`` without writing it back."""
        token_state = state.tokens[token]
        factor = self.growth_factor(token, token_state, now)
        return mul_div(token_state.borrow_index, factor, SCALE)

    def update_index(self, state: LedgerState, token: str, now: int) -> int:
        token_state = state.tokens[token]
        if now == token_state.last_index_update_time:
            return token_state.borrow_index

        factor = self.growth_factor(token, token_state, now)
        token_state.borrow_index = mul_div(token_state.borrow_index, factor, SCALE)
        token_state.last_index_update_time = now
        logger.debug("Borrow index %s -> %d", token, token_state.borrow_index)
        return token_state.borrow_index

    @staticmethod
    def debt_at_index(principal: int, snapshot: int, index: int) -> int:
        if snapshot == 0:
            return principal
        return mul_div(principal, index, snapshot)

    def current_debt(self, state: LedgerState, user: str, token: str) -> int:
        """Principal scaled by index growth since the user's snapshot."""
        position = state.positions.get(user)
        if position is None or token not in position.debts:
            return 0
        debt = position.debts[token]
        return self.debt_at_index(
            debt.principal, debt.borrow_index_snapshot, state.tokens[token].borrow_index
        )
