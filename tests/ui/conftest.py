"""Pytest configuration for UI tests.

Run UI tests with:
    pytest -m ui tests/ui/ --browser chromium -v

For debugging with a visible browser:
    pytest -m ui tests/ui/ --headed --browser chromium -v --slowmo 500
"""
from __future__ import annotations

from pathlib import Path

import pytest

UI_DIR = Path(__file__).parent


# Apply 'ui' marker to all tests in this directory
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Add 'ui' marker to tests collected from tests/ui/."""
    for item in items:
        if UI_DIR in Path(str(item.fspath)).parents:
            item.add_marker(pytest.mark.ui)
