"""Custodian protocol — conversions to and from the ledger asset."""
from typing import Protocol


class Custodian(Protocol):
    """Converts ``amount`` of ``from_asset`` held by the vault into ``to_asset``."""

    def convert(self, from_asset: str, to_asset: str, amount: int) -> int: ...
