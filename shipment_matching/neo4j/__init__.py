"""Neo4j connection and schema utilities."""

from shipment_matching.neo4j.connection import (
    connect_to_store,
    get_neo4j_driver,
    verify_connection,
)
from shipment_matching.neo4j.constraints import (
    create_shipment_indexes,
    shipment_index_statements,
)

__all__ = [
    "connect_to_store",
    "get_neo4j_driver",
    "verify_connection",
    "create_shipment_indexes",
    "shipment_index_statements",
]
