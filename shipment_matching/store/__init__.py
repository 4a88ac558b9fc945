"""Operational record store clients."""

from shipment_matching.store.base import ShipmentStore
from shipment_matching.store.memory import InMemoryShipmentStore
from shipment_matching.store.neo4j_store import Neo4jShipmentStore

__all__ = [
    "ShipmentStore",
    "InMemoryShipmentStore",
    "Neo4jShipmentStore",
]
