"""
Pytest configuration for unit tests.

Keeps tokens from the developer environment out of the tests.
"""
import pytest


@pytest.fixture(autouse=True)
def clean_github_env(monkeypatch):
    """Unset discovery environment variables for every test."""
    for name in ("GITHUB_READ_TOKEN", "GITHUB_WRITE_TOKEN", "COVERAGE_DEFAULT_OWNER"):
        monkeypatch.delenv(name, raising=False)
