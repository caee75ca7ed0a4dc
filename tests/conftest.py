"""Shared pytest fixtures for flow viewer tests."""

import pytest

from flow_viewer.engine.session import FlowSession
from tests.helpers import FakeConnector


@pytest.fixture
def session():
    """Fresh session with default capacities."""
    return FlowSession()


@pytest.fixture
def small_session():
    """Session with tiny ledgers so eviction is easy to exercise."""
    return FlowSession(trade_capacity=3, print_capacity=3, auto_trade_capacity=2)


@pytest.fixture
def connector():
    """Empty connector: every attempt gets a socket that stays open."""
    return FakeConnector([])
