"""
Bondex Engine

Bonding-curve pool ledger, trade execution, access control and events.
"""

from .access import AccessGate, GlobalConfig, Role
from .atomic import ReentrancyGuard, atomic_call
from .checked import (
    bps_of,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    mul_div,
    require_uint,
)
from .core import BondingCurveEngine, engine_address
from .events import (
    Bought,
    EngineEvent,
    EventLog,
    FeeCollectorChanged,
    FeesWithdrawn,
    PoolRegistered,
    RouterChanged,
    Sold,
)
from .ledger import PoolLedger, PoolRecord
from .pricing import (
    CheckedPricingOracle,
    ConstantPriceCurve,
    PiecewiseCurve,
    PricingOracle,
)
from .trade import BuyQuote, SellQuote, compute_buy, compute_fee, compute_sell

__all__ = [
    # Core
    "BondingCurveEngine",
    "engine_address",
    # Access
    "AccessGate",
    "GlobalConfig",
    "Role",
    # Atomicity
    "ReentrancyGuard",
    "atomic_call",
    # Ledger
    "PoolLedger",
    "PoolRecord",
    # Pricing
    "PricingOracle",
    "PiecewiseCurve",
    "ConstantPriceCurve",
    "CheckedPricingOracle",
    # Trade math
    "BuyQuote",
    "SellQuote",
    "compute_buy",
    "compute_sell",
    "compute_fee",
    # Checked arithmetic
    "require_uint",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    "mul_div",
    "bps_of",
    # Events
    "EventLog",
    "EngineEvent",
    "PoolRegistered",
    "Bought",
    "Sold",
    "RouterChanged",
    "FeeCollectorChanged",
    "FeesWithdrawn",
]
