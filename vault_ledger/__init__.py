"""Share-vault and compounding-debt ledger for a multi-asset lending and yield protocol."""
from .services import YieldLedger

__version__ = "0.1.0"

__all__ = ["YieldLedger", "__version__"]
