# src/efficacy/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root": it loads settings once and opens the
StateManager over the configured data directory. Nothing else in the CLI reads
settings from the environment.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import StateManager

logger = logging.getLogger(__name__)


def create_state(*, settings=None) -> StateManager:
    """
    Open the state for the configured data directory.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    logger.debug("Opening state data_dir=%s", settings.data_dir)
    return StateManager.open(settings.data_dir)
