"""
Bondex TOML Configuration Loader

Loads bondex.toml with environment variable overrides.
Every section is a dataclass with from_dict (and apply_env where overridable).

Environment variable mapping:
    [engine] owner         → BONDEX_OWNER
    [engine] quote_asset   → BONDEX_QUOTE_ASSET
    [engine] factory       → BONDEX_FACTORY
    [engine] router        → BONDEX_ROUTER
    [engine] fee_collector → BONDEX_FEE_COLLECTOR
    [engine] address       → BONDEX_ENGINE_ADDRESS
    [logging] level        → BONDEX_LOG_LEVEL
    [logging] file         → BONDEX_LOG_FILE
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..engine.core import BondingCurveEngine
from ..engine.pricing import PricingOracle
from ..exceptions import ConfigError
from ..logger import get_logger, reconfigure_logging
from ..tokens.token import CurveParams, TokenRegistry

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "bondex.toml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class EngineSectionConfig:
    """[engine] section."""
    owner: str = ""
    quote_asset: str = ""
    factory: str = ""
    router: str = ""
    fee_collector: str = ""
    address: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineSectionConfig":
        return cls(
            owner=data.get("owner", ""),
            quote_asset=data.get("quote_asset", ""),
            factory=data.get("factory", ""),
            router=data.get("router", ""),
            fee_collector=data.get("fee_collector", ""),
            address=data.get("address", ""),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("BONDEX_OWNER"):
            self.owner = v
        if v := os.environ.get("BONDEX_QUOTE_ASSET"):
            self.quote_asset = v
        if v := os.environ.get("BONDEX_FACTORY"):
            self.factory = v
        if v := os.environ.get("BONDEX_ROUTER"):
            self.router = v
        if v := os.environ.get("BONDEX_FEE_COLLECTOR"):
            self.fee_collector = v
        if v := os.environ.get("BONDEX_ENGINE_ADDRESS"):
            self.address = v


@dataclass
class CurveSectionConfig:
    """[curve] section. Default curve constants for quoting tools."""
    base_price: int = 1_000_000
    slope: int = 0
    threshold: int = 0
    reference_supply: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveSectionConfig":
        return cls(
            base_price=data.get("base_price", 1_000_000),
            slope=data.get("slope", 0),
            threshold=data.get("threshold", 0),
            reference_supply=data.get("reference_supply", 0),
        )

    def to_params(self) -> CurveParams:
        try:
            return CurveParams(
                base_price=self.base_price,
                slope=self.slope,
                threshold=self.threshold,
                reference_supply=self.reference_supply,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid [curve] section: {e}") from e


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"
    file: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=data.get("level", "INFO"),
            file=data.get("file", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("BONDEX_LOG_LEVEL"):
            self.level = v
        if v := os.environ.get("BONDEX_LOG_FILE"):
            self.file = v

    def apply(self) -> None:
        """Push these settings into the running logging system."""
        if self.file:
            reconfigure_logging(log_level=self.level, log_file=Path(self.file), file_output=True)
        else:
            reconfigure_logging(log_level=self.level)


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class EngineConfig:
    """
    Unified engine configuration.

    Loads every section of bondex.toml and applies environment variable
    overrides.
    """
    engine: EngineSectionConfig = field(default_factory=EngineSectionConfig)
    curve: CurveSectionConfig = field(default_factory=CurveSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create EngineConfig from a parsed TOML dict."""
        return cls(
            engine=EngineSectionConfig.from_dict(data.get("engine", {})),
            curve=CurveSectionConfig.from_dict(data.get("curve", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "EngineConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides); a file that
        is not valid TOML raises ConfigError.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"{config_path} is not valid TOML: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.engine.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigError: on invalid config
        """
        if not self.engine.owner:
            raise ConfigError("[engine] owner must be set")
        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.logging.level}")
        self.curve.to_params()
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        return {
            "engine": {
                "owner": self.engine.owner,
                "quote_asset": self.engine.quote_asset,
                "factory": self.engine.factory,
                "router": self.engine.router,
                "fee_collector": self.engine.fee_collector,
                "address": self.engine.address,
            },
            "curve": self.curve.to_params().to_dict(),
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


# -----------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. BONDEX_CONFIG env var
        3. ./bondex.toml in current directory
        4. Defaults (with env overrides)

    Only a file named by 1. or 2. is expected to exist; when neither is given
    and there is no ./bondex.toml, the defaults are used without a warning.
    """
    if path is None:
        path = os.environ.get("BONDEX_CONFIG") or None
    if path is None:
        if not Path(DEFAULT_CONFIG_FILE).exists():
            cfg = EngineConfig()
            cfg.apply_env()
            return cfg
        path = DEFAULT_CONFIG_FILE

    return EngineConfig.from_file(path)


def build_engine(
    config: EngineConfig,
    registry: TokenRegistry,
    oracle: Optional[PricingOracle] = None,
) -> BondingCurveEngine:
    """
    Deploy a BondingCurveEngine from *config*.

    The [logging] section is applied first. The configured owner then applies
    every role that is set; unset roles stay unset and match nobody.
    """
    config.validate()
    config.logging.apply()
    section = config.engine
    owner = section.owner

    engine = BondingCurveEngine(
        owner,
        registry,
        oracle=oracle,
        address=section.address or None,
    )
    if section.quote_asset:
        engine.set_quote_asset(owner, section.quote_asset)
    if section.factory:
        engine.set_factory(owner, section.factory)
    if section.router:
        engine.set_router(owner, section.router)
    if section.fee_collector:
        engine.set_fee_collector(owner, section.fee_collector)
    return engine
