# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from efficacy.core.state import StateManager


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the CLI and the state layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any .env file.
    """
    return SimpleNamespace(
        app_name="efficacy",
        log_level="WARNING",
        log_dir=None,
        data_dir=tmp_path / "data",
        task_format="%b %d %i",
        color=False,
    )


@pytest.fixture()
def manager(settings: SimpleNamespace) -> StateManager:
    """A StateManager over a fresh data directory (first-run bootstrap)."""
    return StateManager.open(settings.data_dir)
