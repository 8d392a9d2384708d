"""
Process-level constants for the bridge.

Values that the logging layer needs before settings are loaded live here,
read once from the environment.
"""

import os
from typing import Final


# =============================================================================
# System Configuration
# =============================================================================

APP_NAME: Final[str] = "fiscal_pos_bridge"


# =============================================================================
# External Services Configuration
# =============================================================================

# Empty disables the Loki handler
LOKI_URL: Final[str] = os.environ.get("LOKI_URL", "")


# =============================================================================
# Log Files
# =============================================================================

LOG_FILE: Final[str] = os.environ.get("LOG_FILE", "logs/bridge.log")
LOG_LEVEL: Final[str] = os.environ.get("LOG_LEVEL", "DEBUG").upper()
