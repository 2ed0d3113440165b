"""
Pytest configuration for core-tests.

This module contains fixtures and configuration for the gateway core tests.
"""
import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (spawn real subprocesses)"
    )
