"""Root conftest — shared fixtures and markers."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "access: requires Microsoft Access ODBC driver")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("NURSERYDB_TEST_ACCESS"):
        return

    skip_access = pytest.mark.skip(reason="Access driver not available (set NURSERYDB_TEST_ACCESS=1)")
    for item in items:
        if "access" in item.keywords:
            item.add_marker(skip_access)


@pytest.fixture
def isolated_home(tmp_path):
    """Point the connections file and query log at a temp directory."""
    with patch("nurserydb.connections._CONNECTIONS_FILE", tmp_path / "connections.toml"), patch(
        "nurserydb.querylog._LOG_ROOT", tmp_path / "logs"
    ):
        yield tmp_path
