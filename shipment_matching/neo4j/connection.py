"""
Neo4j driver construction and connectivity checks.
"""

import logging

from shipment_matching.config import (
    get_neo4j_database,
    get_neo4j_password,
    get_neo4j_uri,
    get_neo4j_user,
)
from shipment_matching.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def get_neo4j_driver():
    """
    Create a Neo4j driver from settings.

    Raises:
        ImportError: If the neo4j package is not installed
        ValueError: If NEO4J_PASSWORD is not configured
    """
    from neo4j import GraphDatabase

    return GraphDatabase.driver(get_neo4j_uri(), auth=(get_neo4j_user(), get_neo4j_password()))


def verify_connection(driver) -> bool:
    """Return True if the driver can reach the server."""
    try:
        driver.verify_connectivity()
        return True
    except Exception as e:
        logger.debug(f"Neo4j connectivity check failed: {e}")
        return False


def connect_to_store(driver_factory=get_neo4j_driver) -> tuple:
    """
    Open a verified connection to the shipment database.

    Args:
        driver_factory: Callable returning a driver (default: from settings)

    Returns:
        Tuple of (driver, database)

    Raises:
        ValueError: If the connection settings are incomplete
        StoreUnavailableError: If the server cannot be reached
    """
    driver = driver_factory()
    if not verify_connection(driver):
        driver.close()
        raise StoreUnavailableError(f"Could not connect to Neo4j at {get_neo4j_uri()}")
    database = get_neo4j_database()
    logger.info(f"Connected to Neo4j database {database}")
    return driver, database
