"""Shared test fixtures."""

from collections.abc import Callable

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import slemon.storage.models  # noqa: F401
from slemon.controller.base import BaseControllerClient
from slemon.sle.collector import SLECollectionService
from slemon.sle.models import ClientRecord, Scope, SLEDataPoint
from slemon.sle.store import TimeSeriesStore
from slemon.storage.kv import KeyValueStore


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created.

    StaticPool ensures every session uses the same connection,
    so the in-memory database is shared across the test.
    """
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def kv(engine) -> KeyValueStore:
    return KeyValueStore(engine)


@pytest.fixture
def store(kv) -> TimeSeriesStore:
    return TimeSeriesStore(kv)


class FakeController(BaseControllerClient):
    """Controller stand-in returning a canned response for every request."""

    def __init__(
        self,
        payload: object = None,
        status_code: int = 200,
        authenticated: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.payload = payload if payload is not None else []
        self.status_code = status_code
        self.authenticated = authenticated
        self.error = error
        self.requests: list[tuple[str, str]] = []

    def is_authenticated(self) -> bool:
        return self.authenticated

    async def make_authenticated_request(
        self, path: str, method: str = "GET", **kwargs: object
    ) -> httpx.Response:
        self.requests.append((method, path))
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, bytes):
            return httpx.Response(self.status_code, content=self.payload)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def make_service(store) -> Callable[..., SLECollectionService]:
    """Build a collection service over the test store with a fake controller."""

    def _make(api: BaseControllerClient | None = None, **kwargs) -> SLECollectionService:
        kwargs.setdefault("interval", 1)
        return SLECollectionService(api=api or FakeController(), store=store, **kwargs)

    return _make


def make_point(
    timestamp: int,
    site_id: str = "site-a",
    metric_key: str = "coverage",
    scope: Scope = Scope.wireless,
    value: float = 10.0,
    unit: str = "percent_poor_coverage",
) -> SLEDataPoint:
    return SLEDataPoint(
        metric_key=metric_key,
        scope=scope,
        site_id=site_id,
        site_name=f"Site {site_id}",
        timestamp=timestamp,
        value=value,
        unit=unit,
    )


def make_client(**fields) -> ClientRecord:
    fields.setdefault("mac_address", "AA:BB:CC:DD:EE:FF")
    return ClientRecord(**fields)
