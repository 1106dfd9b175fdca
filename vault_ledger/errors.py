"""Ledger errors. Every failure aborts the whole operation."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures."""


class InvalidAmount(LedgerError):
    """Non-positive amount, or nothing to act on."""


class Unauthorized(LedgerError):
    """Privileged operation attempted by a non-owner."""


class UnsupportedAsset(LedgerError):
    """Asset or token is not usable for the requested operation."""


class AlreadySupported(LedgerError):
    """Asset or token is already registered."""


class NotSupported(LedgerError):
    """Asset or token is not registered."""


class InsufficientLiquidity(LedgerError):
    """Reserves too low to serve the request."""


class InsufficientCollateral(LedgerError):
    """Resulting debt would exceed the max-borrowable value."""


class RepayExceedsDebt(LedgerError):
    """Repayment larger than the outstanding debt."""


class InsufficientShares(LedgerError):
    """Share amount larger than the caller's balance."""


class TransferFailed(LedgerError):
    """A token transfer, transfer_from or approve returned failure."""


class ConversionFailed(LedgerError):
    """The custodian could not convert between assets."""


class TooEarly(LedgerError):
    """Periodic operation invoked before its minimum interval."""


class InvalidState(LedgerError):
    """Operation not allowed in the current ledger state."""


class ReentrantCall(InvalidState):
    """A mutating operation was entered from inside another one."""


class CapacityExceeded(InvalidState):
    """A bounded list would grow past its cardinality limit."""


class PriceUnavailable(LedgerError):
    """The price oracle has no usable price for a token."""


class Overflow(LedgerError):
    """Intermediate value outside the representable unsigned range."""


class DivideByZero(LedgerError):
    """Fixed-point division by zero."""
