"""
Bondex Exceptions

Every failure raised by the engine is distinguishable by kind so that a
calling layer (router, factory) can implement its own retry or slippage
policy on top. All of them abort the current call only.
"""


class BondexException(Exception):
    """Base exception for Bondex."""
    pass


class ConfigError(BondexException):
    """Configuration value is missing, empty or unusable."""
    pass


class AccessDenied(BondexException):
    """Caller failed an access gate check."""
    pass


class PoolStateError(BondexException):
    """Pool not found, or already registered."""
    pass


class BoundsError(BondexException):
    """Supply or quote amount outside the allowed range."""
    pass


class InsolvencyError(BondexException):
    """Payout exceeds the pool reserve, or withdrawal exceeds the engine balance."""
    pass


class UnsignedArithmeticError(BondexException, ArithmeticError):
    """Operation would leave the unsigned 256-bit integer domain."""
    pass


class TransferError(BondexException):
    """The token transfer primitive reported failure."""
    pass


class ReentrancyError(BondexException):
    """A guarded entry point was re-entered while already executing."""
    pass


class PricingError(BondexException):
    """The pricing oracle returned a value outside its contract."""
    pass
