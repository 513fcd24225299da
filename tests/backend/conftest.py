"""
Pytest configuration and fixtures for backend tests.

Provides fixtures for:
- Sandbox workspace metadata matching a typical agent sandbox
- A controllable clock for cache expiry tests
- A mock workspace resolver (the sandbox lifecycle collaborator)
- Isolation of the process-wide context cache and settings
"""
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add project root to path before importing project modules
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sandbox_paths import config as settings_module  # noqa: E402
from sandbox_paths.core.session_context import reset_sandbox_context_cache  # noqa: E402
from sandbox_paths.core.workspace import SandboxWorkspaceInfo  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests that wire several components together"
    )


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sandbox_workspace() -> SandboxWorkspaceInfo:
    """Workspace of a sandboxed agent session."""
    return SandboxWorkspaceInfo(
        workspace_dir="/opt/openclaw/sandboxes/agent-test-123",
        container_workdir="/workspace",
        workspace_access="rw",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace_resolver(sandbox_workspace: SandboxWorkspaceInfo) -> AsyncMock:
    """Collaborator that reports every session as sandboxed."""
    return AsyncMock(return_value=sandbox_workspace)


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the default context cache and settings around each test."""
    reset_sandbox_context_cache()
    settings_module._settings = None
    yield
    reset_sandbox_context_cache()
    settings_module._settings = None
