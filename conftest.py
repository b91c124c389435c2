"""
Pytest configuration for the sdlpack test suite.

Integration tests (marked ``integration``) drive real CMake builds and are
skipped unless the --full flag is given.
"""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: slow tests that need cmake and a compiler")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --full was passed."""
    if config.getoption("--full"):
        return
    skip_integration = pytest.mark.skip(reason="integration test, use --full to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
