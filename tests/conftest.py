"""
Shared pytest fixtures for replbridge tests.

This module provides common fixtures including:
- fake_repl_command: argv that launches the fake REPL in tests/fixtures
- session: a started SessionModule talking to the fake REPL over real pipes
- make_session: factory for sessions with custom options
"""

import os
import sys
from pathlib import Path
from typing import List

import pytest
import pytest_asyncio

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from replbridge.errors import ShutdownFailure
from replbridge.modules.session import SessionModule

FAKE_REPL = Path(__file__).parent / "fixtures" / "fake_repl.py"


# =============================================================================
# Fake REPL Infrastructure
# =============================================================================


def fake_repl_command(*options: str) -> List[str]:
    """
    Build the argv that runs the fake REPL.

    Usage:
        SessionModule(fake_repl_command("--ignore-eof"))
    """
    return [sys.executable, "-u", str(FAKE_REPL), *options]


@pytest.fixture
def fake_repl_argv() -> List[str]:
    """Default fake REPL argv."""
    return fake_repl_command()


@pytest_asyncio.fixture
async def make_session():
    """
    Factory fixture for started sessions; every session is shut down afterwards.

    Usage:
        async def test_something(make_session):
            session = await make_session("--banner", shutdown_grace=0.5)
    """
    sessions: List[SessionModule] = []

    async def factory(*options: str, **kwargs) -> SessionModule:
        kwargs.setdefault("shutdown_grace", 1.0)
        session = SessionModule(fake_repl_command(*options), **kwargs)
        await session.start()
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        try:
            await session.shutdown()
        except ShutdownFailure:
            # Tests that crash or hang the fake REPL leave a non-zero exit
            pass


@pytest_asyncio.fixture
async def session(make_session) -> SessionModule:
    """A started session on the default fake REPL."""
    return await make_session()


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "subprocess: Tests that spawn the fake REPL process"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
