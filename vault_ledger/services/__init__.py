"""Ledger services."""
from .borrow_index import BorrowIndexLedger
from .debt_ledger import MAX_BORROWED_TOKENS, UserDebtLedger
from .fees import FeeEngine
from .guard import ReentrancyGuard
from .health import HealthFactorEngine
from .interest_rate import InterestRateModel, RateParams
from .ledger import MAX_SUPPORTED_ASSETS, YieldLedger, require_transfer
from .rebalance import RebalanceController
from .share_vault import ShareVault, Withdrawal, YieldDistribution

__all__ = [
    "BorrowIndexLedger",
    "FeeEngine",
    "HealthFactorEngine",
    "InterestRateModel",
    "MAX_BORROWED_TOKENS",
    "MAX_SUPPORTED_ASSETS",
    "RateParams",
    "RebalanceController",
    "ReentrancyGuard",
    "ShareVault",
    "UserDebtLedger",
    "Withdrawal",
    "YieldDistribution",
    "YieldLedger",
    "require_transfer",
]
