"""Shared fixtures for bridge tests."""

import pytest

from cctp_bridge.attestation import BackoffPolicy
from tests.fakes import FakeNetwork


@pytest.fixture()
def fake_network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture()
def no_wait_policy() -> BackoffPolicy:
    """Backoff without sleeping."""
    return BackoffPolicy(max_attempts=5, initial_delay=0, max_delay=0)
