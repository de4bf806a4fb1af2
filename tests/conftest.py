# tests/conftest.py
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shopsync.db import init_db, make_session_factory
from shopsync.locks import LocalRunLock
from shopsync.normalizer import Normalizer
from shopsync.reconciler import Reconciler
from shopsync.sync import SyncOrchestrator

STORE_DOMAIN = "acme-test.myshopify.com"


class TickingClock:
    """Naive UTC clock that moves one second per call."""

    def __init__(self, start=datetime(2025, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


class FakeFetcher:
    def __init__(self, products=None, error=None):
        self.products = products or []
        self.error = error
        self.calls = 0

    def fetch_catalog(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.products)


@pytest.fixture
def engine():
    # in-memory SQLite stands in for PostgreSQL; both support ON CONFLICT upserts
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def normalizer():
    return Normalizer(STORE_DOMAIN)


@pytest.fixture
def reconciler(session_factory, clock):
    return Reconciler(session_factory, channel="shopify", clock=clock)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def orchestrator(fetcher, normalizer, reconciler, engine):
    return SyncOrchestrator(fetcher, normalizer, reconciler, LocalRunLock("catalog-sync-test"), engine=engine)


@pytest.fixture
def scarf():
    return {
        "id": 1001,
        "title": "Silk Scarf",
        "vendor": "Acme",
        "variants": [{"id": 55, "sku": "SC-1", "inventory_quantity": 4}],
    }
