"""
Pytest configuration for arduswift test suite.

This configuration enables the --full flag to run integration tests.
"""

import pytest

from arduswift.build_log import setup_logging


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (needs arduino-cli and swiftc)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    if config.getoption("--full"):
        # Remove the default marker expression that excludes integration tests
        markexpr = config.getoption("-m", "")
        if markexpr == "not integration":
            # Clear the marker expression to run all tests
            config.option.markexpr = ""


@pytest.fixture(autouse=True)
def _clean_arduswift_env(monkeypatch):
    """Keep host environment variables out of path and port resolution."""
    for name in ("ARDUINO_SWIFT_ROOT", "ARDUINO_SWIFT_TOOL_ROOT", "SWIFTC", "PORT", "BAUD", "ARDUINO_SWIFT_VERBOSE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _console_logging(_clean_arduswift_env):
    """Route arduswift log records to the (captured) console streams."""
    setup_logging(verbose=False)
