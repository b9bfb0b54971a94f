"""
Bondex Constants

This module consolidates the protocol constants of the bonding-curve engine
and the environment configuration used by the logging layer. Constants are
organized by category for easy reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE PROTOCOL VALUES BELOW ARE PART OF THE TRADE ALGORITHM. CHANGING ANY OF THEM CHANGES
# THE OUTPUT OF EVERY BUY AND SELL AND INVALIDATES QUOTES HANDED OUT BY ROUTERS.

# ==================================================================================
# FEE PARAMETERS
# ==================================================================================
FEE_BPS = 50  # 0.5%, fixed
BPS_DENOMINATOR = 10_000


# ==================================================================================
# UNIT CONVENTIONS
# ==================================================================================
ASSET_DECIMALS = 6
PRICE_SCALE = 10 ** ASSET_DECIMALS  # quote units per one whole asset unit

# 1 trillion whole units at 6 fractional digits
MAX_POOL_SUPPLY = 10 ** 18

# Unsigned integer domain every reserve/supply computation must stay inside
UINT256_MAX = 2 ** 256 - 1


# ==================================================================================
# TOKEN LEDGER
# ==================================================================================
TOKEN_DEFAULT_DECIMALS = ASSET_DECIMALS
TOKEN_MAX_SUPPLY = UINT256_MAX
TOKEN_REGISTRY_MAX_TOKENS = 10_000


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = dict(LOGGER_DEFAULTS)
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    # Case-insensitive membership check
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    # Wraps based on parsed value type.
    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        # Preserves the original raw string for ConfigString storage.
        namespace[key] = ConfigString(value_raw, default_val)
