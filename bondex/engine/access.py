"""
Bondex Access Gate

Role configuration and the four authorization guards wrapping every
state-mutating entry point. Each guard is a plain equality check between the
caller and the configured identity; a role that has never been set matches
nobody.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import AccessDenied, ConfigError


class Role(Enum):
    OWNER = "owner"
    FACTORY = "factory"
    ROUTER = "router"
    FEE_COLLECTOR = "fee_collector"


@dataclass(frozen=True)
class GlobalConfig:
    """
    Engine-wide configuration.

    `owner` is fixed at deployment; every other field is set (and fully
    replaced) by the owner.
    """
    owner: str
    quote_asset: Optional[str] = None
    factory: Optional[str] = None
    router: Optional[str] = None
    fee_collector: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "quoteAsset": self.quote_asset,
            "factory": self.factory,
            "router": self.router,
            "feeCollector": self.fee_collector,
        }


def _require_handle(field_name: str, value: Optional[str]) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field_name} must be a non-empty identifier")
    return value


class AccessGate:
    """Holds GlobalConfig and answers authorization checks against it."""

    def __init__(self, owner: str):
        self.config = GlobalConfig(owner=_require_handle("owner", owner))

    # -- Guards -------------------------------------------------------------

    def _require(self, role: Role, caller: str) -> None:
        expected = getattr(self.config, role.value)
        if expected is None or caller != expected:
            raise AccessDenied(f"{caller} is not the {role.value.replace('_', ' ')}")

    def require_owner(self, caller: str) -> None:
        self._require(Role.OWNER, caller)

    def require_factory(self, caller: str) -> None:
        self._require(Role.FACTORY, caller)

    def require_router(self, caller: str) -> None:
        self._require(Role.ROUTER, caller)

    def require_fee_collector(self, caller: str) -> None:
        self._require(Role.FEE_COLLECTOR, caller)

    # -- Setters ------------------------------------------------------------

    def assign(self, caller: str, field_name: str, value: Optional[str]) -> Optional[str]:
        """
        Replace one configuration field on behalf of the owner.

        Returns the previous value (None if the field was unset).
        """
        if field_name == "owner" or field_name not in GlobalConfig.__dataclass_fields__:
            raise ConfigError(f"{field_name} is not a settable configuration field")
        self.require_owner(caller)
        new = _require_handle(field_name, value)
        old = getattr(self.config, field_name)
        self.config = replace(self.config, **{field_name: new})
        return old

    # -- Snapshot / restore -------------------------------------------------

    def snapshot(self) -> GlobalConfig:
        return self.config

    def restore(self, snapshot: GlobalConfig) -> None:
        self.config = snapshot
