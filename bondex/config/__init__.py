"""
Bondex Configuration

Loads bondex.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    EngineConfig,
    EngineSectionConfig,
    CurveSectionConfig,
    LoggingSectionConfig,
    build_engine,
    load_config,
)

__all__ = [
    "EngineConfig",
    "EngineSectionConfig",
    "CurveSectionConfig",
    "LoggingSectionConfig",
    "build_engine",
    "load_config",
]
