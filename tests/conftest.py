"""Pytest configuration for repository test runs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _isolate_kora_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop KORA_* variables so tests start from documented defaults."""
    for env_name in list(os.environ):
        if env_name.startswith("KORA_"):
            monkeypatch.delenv(env_name)
