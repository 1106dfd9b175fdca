"""Protocol interfaces for the collaborators the ledger consumes."""
from .clock import Clock
from .custodian import Custodian
from .event_sink import EventSink
from .price_oracle import PriceOracle
from .staking import StakingService
from .token import FungibleToken

__all__ = [
    "Clock",
    "Custodian",
    "EventSink",
    "FungibleToken",
    "PriceOracle",
    "StakingService",
]
