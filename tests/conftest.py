# contact-enrichment-client/tests/conftest.py
#
# Test bootstrap for pytest: ensure repository root is on sys.path so tests can import
# the `contact_enrichment` package and the `tests.mocks` helpers without installing.
#
# Fixture Organization:
# - This file: Core fixtures (fake clock, stub transport, client config)
# - tests/mocks/: Stub collaborators (StubTransport, FakeClock, RecordingCallback)
#
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger


_repo_root = Path(__file__).resolve().parents[1]
_repo_root_str = str(_repo_root)

if _repo_root_str not in sys.path:
    sys.path.insert(0, _repo_root_str)

# Configure test logging using loguru for consistency with application code
logger.remove()
logger.add(
    sys.stderr,
    level="INFO",
    format="{time:YYYY-MM-DD HH:mm:ss} {level} {name}: {message}",
)

from contact_enrichment.config.loader import reload_config  # noqa: E402
from contact_enrichment.config.schemas import ClientConfig  # noqa: E402
from tests.mocks.clock import FakeClock  # noqa: E402
from tests.mocks.transport import StubTransport  # noqa: E402


# Pytest Configuration
# ===================


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "fast: Fast unit tests that should complete in < 1 second",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that exercise real thread timing (may take > 1 second)",
    )


# Core Fixtures
# =============


@pytest.fixture
def fake_clock() -> FakeClock:
    """Deterministic monotonic clock whose sleep() advances time."""
    return FakeClock()


@pytest.fixture
def stub_transport() -> StubTransport:
    """Transport that answers every request with an empty success."""
    return StubTransport()


@pytest.fixture
def client_config() -> ClientConfig:
    """Client configuration that never touches the network or the environment."""
    return ClientConfig(
        base_url="https://api.test.local/v2",
        worker_count=2,
        api_key="test-key",  # pragma: allowlist secret
        retry_attempts=1,
        retry_backoff_seconds=0,
    )


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Every test starts with a fresh get_config() cache."""
    reload_config()
    yield
    reload_config()
