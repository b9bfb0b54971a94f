"""
Bondex token ledger

Provides:
  - FungibleToken : integer-unit fungible token with ERC-20-style interface
  - CurveToken    : launch asset carrying its bonding-curve constants
  - TokenRegistry : handle -> token lookup
"""

from .token import (
    CurveParams,
    CurveToken,
    FungibleToken,
    TokenRegistry,
    TokenTransferEvent,
    TokenApprovalEvent,
    TokenMintEvent,
    TokenError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
    TokenFrozenError,
    token_address,
)

__all__ = [
    "CurveParams",
    "CurveToken",
    "FungibleToken",
    "TokenRegistry",
    "TokenTransferEvent",
    "TokenApprovalEvent",
    "TokenMintEvent",
    "TokenError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "TokenFrozenError",
    "token_address",
]
