"""
Bondex Package

Single-quote-asset bonding-curve exchange engine.
For direct module access, import from submodules:

    from bondex.engine import BondingCurveEngine, PiecewiseCurve
    from bondex.tokens import CurveToken, FungibleToken, TokenRegistry
    from bondex.exceptions import InsolvencyError
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
