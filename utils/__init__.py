# Author: Bradley R. Kinnard
# utils module exports

from utils.helpers import (
    load_system_config,
    canonical_json,
    get_logger,
    set_log_level,
)

__all__ = [
    "load_system_config",
    "canonical_json",
    "get_logger",
    "set_log_level",
]
