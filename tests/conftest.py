"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from pmm.api.endpoints import get_pool
from pmm.api.main import app
from pmm.engine import PMMPool
from tests.helpers import ONE, make_pool


@pytest.fixture
def pool() -> PMMPool:
    """Reference pool with lp fee 0.2% and no maintainer fee."""
    return make_pool(mt_fee_rate=0)


@pytest.fixture
def fee_pool() -> PMMPool:
    """Reference pool with lp fee 0.2% and maintainer fee 0.1%."""
    return make_pool()


@pytest.fixture
def amm_pool() -> PMMPool:
    """Reference pool in constant-product mode (k = 1)."""
    return make_pool(k=ONE)


@pytest.fixture
def client(fee_pool: PMMPool):
    """Test client serving `fee_pool`."""
    app.dependency_overrides[get_pool] = lambda: fee_pool
    yield TestClient(app)
    app.dependency_overrides.clear()
