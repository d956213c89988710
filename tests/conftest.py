"""
Pytest configuration and shared fixtures for jukebox tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
- Stubs from jukebox.infrastructure.stubs stand in for real storage
"""

import pytest


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from jukebox import __version__

    return __version__
