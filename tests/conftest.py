"""
Pytest configuration and shared fixtures.

Registers custom markers and provides fixtures shared across the suite.
"""

import io

import pytest

from poolvisor.config import SupervisorConfig
from poolvisor.log import LogConfig, LoggerFactory
from tests.helpers.fakes import FakeBackend, FakeClock

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (real sockets, pipes, files)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests (real worker processes)"
    )
    config.addinivalue_line("markers", "slow: Tests that take >1 second to run")


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def log_stream() -> io.StringIO:
    """Stream capturing supervisor log output."""
    return io.StringIO()


@pytest.fixture
def lg(log_stream):
    """Plain-text debug logger writing to `log_stream`."""
    return LoggerFactory.create_root(
        LogConfig.from_params("debug", colors=False), stream=log_stream
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_supervisor(lg, backend, clock):
    """Build Supervisors over the fake backend and clock, closing them afterwards."""
    from poolvisor.core import Supervisor

    created = []

    def _make(**config):
        config.setdefault("capacity_check_interval", 0)
        sup = Supervisor(
            lg, SupervisorConfig(**config), backend, clock=clock, wakeup=False
        )
        created.append(sup)
        return sup

    yield _make
    for sup in created:
        sup.close()


# =============================================================================
# Test Collection Hooks
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Add 'unit' marker to tests without other markers."""
    for item in items:
        if not any(
            mark.name in ["integration", "e2e"] for mark in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
