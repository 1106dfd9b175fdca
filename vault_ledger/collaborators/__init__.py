"""Reference collaborators for simulations and tests."""
from .custodian import FixedRateCustodian
from .staking import RatioStakingService
from .token import InMemoryToken

__all__ = ["FixedRateCustodian", "InMemoryToken", "RatioStakingService"]
