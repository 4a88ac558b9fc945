"""
Pytest configuration and shared fixtures for shipment_matching tests.
"""

import os

import pytest

# Set test environment variables if not already set
if not os.getenv("NEO4J_URI"):
    os.environ["NEO4J_URI"] = "bolt://localhost:7687"
if not os.getenv("NEO4J_USER"):
    os.environ["NEO4J_USER"] = "neo4j"
if not os.getenv("NEO4J_DATABASE"):
    os.environ["NEO4J_DATABASE"] = "neo4j"

from shipment_matching.config import Settings  # noqa: E402
from shipment_matching.matching.filters import ScopeFilter  # noqa: E402
from shipment_matching.matching.matcher import ShipmentMatcher  # noqa: E402
from shipment_matching.store.memory import InMemoryShipmentStore  # noqa: E402

# Shipments keyed by document key. Booking dates are spread out so that
# only SHIP-C falls inside the date window used by the date/amount tests.
SAMPLE_SHIPMENTS = {
    "ICAL-9F3K2Q": {
        "shipmentID": "ICAL-9F3K2Q",
        "companyID": "ACME",
        "selectedCarrier": {"name": "FedEx Freight"},
    },
    "SHIP-B": {
        "shipmentID": "ICAL-B00001",
        "companyID": "ACME",
        "carrier": "UPS",
        "carrierBookingConfirmation": {"trackingNumber": "1Z999AA10123456784"},
    },
    "SHIP-C": {
        "shipmentID": "ICAL-C00001",
        "companyID": "ACME",
        "carrier": "Purolator",
        "bookedAt": "2024-03-12T09:30:00Z",
        "markupRates": {"totalCharges": 520.00},
    },
    "SHIP-OTHER-ORG": {
        "shipmentID": "ICAL-X00001",
        "companyID": "GLOBEX",
        "carrier": "UPS",
        "trackingNumber": "1ZOTHERORG0000001",
        "bookedAt": "2024-05-20T12:00:00Z",
        "totalCharges": 75.0,
    },
    "SHIP-REF": {
        "shipmentID": "ICAL-R00001",
        "companyId": "ACME",
        "carrierName": "Day & Ross",
        "shipmentInfo": {"shipperReferenceNumber": "PO-77812"},
        "bookedAt": "2023-11-02T16:45:00Z",
        "manualRates": [{"charge": "100.00"}, {"charge": "25.50"}],
    },
}


def make_settings(**overrides) -> Settings:
    """Settings that ignore any local .env file."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the developer's .env."""
    return make_settings()


@pytest.fixture
def shipment_store() -> InMemoryShipmentStore:
    """In-memory store loaded with SAMPLE_SHIPMENTS."""
    return InMemoryShipmentStore(SAMPLE_SHIPMENTS)


@pytest.fixture
def acme_scope() -> ScopeFilter:
    """Scope of a caller who belongs to ACME."""
    return ScopeFilter.of(["ACME"])


@pytest.fixture
def matcher(shipment_store, settings) -> ShipmentMatcher:
    """Matcher over the sample store with a null audit sink."""
    return ShipmentMatcher(shipment_store, settings=settings)


class MockRecord:
    """Mock Neo4j record for testing."""

    def __init__(self, data: dict):
        self._data = data

    def __getitem__(self, key):
        return self._data[key]

    def get(self, key, default=None):
        return self._data.get(key, default)


class MockResult:
    """Mock Neo4j result: iterable records plus consume()."""

    def __init__(self, records: list[dict] | None = None):
        self._records = [MockRecord(r) for r in records or []]

    def __iter__(self):
        return iter(self._records)

    def consume(self):
        return None


class MockSession:
    """
    Mock Neo4j session.

    `responder(query, params)` returns a list of row dicts or raises.
    Every call is recorded in `calls` as (query, params).
    """

    def __init__(self, responder=None, calls: list | None = None):
        self.responder = responder or (lambda query, params: [])
        self.calls = calls if calls is not None else []

    def run(self, query, parameters=None, **params):
        params = {**(parameters or {}), **params}
        self.calls.append((query, params))
        return MockResult(self.responder(query, params))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class MockDriver:
    """Mock Neo4j driver handing out MockSessions that share one call log."""

    def __init__(self, responder=None):
        self.responder = responder
        self.calls: list = []
        self.databases: list = []

    def session(self, database=None):
        self.databases.append(database)
        return MockSession(self.responder, self.calls)

    def close(self):
        return None


@pytest.fixture
def mock_driver():
    """Factory: mock_driver(responder) -> MockDriver."""
    return MockDriver


@pytest.fixture
def sample_shipments() -> dict:
    """Raw SAMPLE_SHIPMENTS documents, for tests that build their own store."""
    return SAMPLE_SHIPMENTS
