"""Shared modules for tubes-cli.

This module provides functionality used across commands:
- Paths (user config dir, per-environment state dirs)
- Logging (structlog setup)
"""

from .logging import configure_logging, get_logger, level_for_verbosity
from .paths import (
    CONFIG_FILE,
    ENVIRONMENTS_DIRNAME,
    TUBES_DIR,
    default_state_dir,
    ensure_state_dir,
    resolve_state_dir,
)

__all__ = [
    # Paths
    "TUBES_DIR",
    "CONFIG_FILE",
    "ENVIRONMENTS_DIRNAME",
    "default_state_dir",
    "ensure_state_dir",
    "resolve_state_dir",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
