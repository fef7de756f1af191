"""
Elevator Simulator Configuration File

This file contains all configuration parameters for the elevator simulator,
using configurable settings instead of hardcoded constants
"""
import copy
from typing import Dict, Any


# Default elevator floor configuration
DEFAULT_MIN_FLOOR = 1
DEFAULT_MAX_FLOOR = 10
MIN_MAX_FLOOR = 2  # A car always serves at least two floors

# Runtime configuration
TICK_INTERVAL = 1.0  # Seconds between automatic ticks when driven by the runner

# Console configuration
CONSOLE_PROMPT = "> "
DEFAULT_STEP_TICKS = 1

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_LOG_FORMAT = '%(message)s'
TICK_PREFIX = "[Tick] "

# Complete default configuration
DEFAULT_CONFIG = {
    "elevator": {
        "min_floor": DEFAULT_MIN_FLOOR,
        "max_floor": DEFAULT_MAX_FLOOR,
        "min_max_floor": MIN_MAX_FLOOR
    },
    "timing": {
        "tick_interval": TICK_INTERVAL
    },
    "console": {
        "prompt": CONSOLE_PROMPT,
        "default_step": DEFAULT_STEP_TICKS
    },
    "logging": {
        "level": LOG_LEVEL,
        "format": LOG_FORMAT,
        "console_format": CONSOLE_LOG_FORMAT,
        "tick_prefix": TICK_PREFIX
    }
}


def get_config() -> Dict[str, Any]:
    """
    Get elevator simulator configuration

    Returns:
        Independent copy of the complete configuration, safe for callers to modify
    """
    return copy.deepcopy(DEFAULT_CONFIG)
