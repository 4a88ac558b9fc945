"""
Neo4j constraint and index creation for the shipment store.

Every field the lookup strategies query by equality or range gets an
index, so matching stays an indexed lookup rather than a label scan.
"""

import logging

from shipment_matching.constants import (
    BOOKED_AT_FIELD,
    REFERENCE_NUMBER_FIELDS,
    SHIPMENT_ID_FIELD,
    SHIPMENT_KEY_PROPERTY,
    TRACKING_NUMBER_FIELDS,
)

logger = logging.getLogger(__name__)


def _index_name(field: str) -> str:
    return "shipment_" + field.replace(".", "_").lower()


def shipment_index_statements() -> list[str]:
    """Cypher statements for the Shipment key constraint and lookup indexes."""
    statements = [
        (
            f"CREATE CONSTRAINT shipment_key IF NOT EXISTS "
            f"FOR (s:Shipment) REQUIRE s.{SHIPMENT_KEY_PROPERTY} IS UNIQUE"
        ),
        "CREATE INDEX match_attempt_user IF NOT EXISTS FOR (a:MatchAttempt) ON (a.userId)",
    ]
    fields = [SHIPMENT_ID_FIELD, *TRACKING_NUMBER_FIELDS, *REFERENCE_NUMBER_FIELDS, BOOKED_AT_FIELD]
    for field in fields:
        statements.append(
            f"CREATE INDEX {_index_name(field)} IF NOT EXISTS FOR (s:Shipment) ON (s.`{field}`)"
        )
    return statements


def _run_constraints(
    driver,
    statements: list[str],
    database: str | None = None,
    log: logging.Logger | None = None,
) -> int:
    """
    Run constraint/index statements, tolerating ones that already exist.

    Returns:
        Number of statements that ran without error
    """
    if log is None:
        log = logger

    created = 0
    with driver.session(database=database) as session:
        for statement in statements:
            try:
                session.run(statement)
                created += 1
                log.info(f"✓ Created: {statement[:60]}...")
            except Exception as e:
                error_str = str(e).lower()
                if "already exists" in error_str or "equivalent" in error_str:
                    log.debug(f"Index already exists: {statement[:60]}")
                else:
                    log.warning(f"⚠ Warning creating index: {e}")
    return created


def create_shipment_indexes(
    driver, database: str | None = None, logger: logging.Logger | None = None
) -> int:
    """
    Create the Shipment key constraint and the indexes used by matching.

    Args:
        driver: Neo4j driver instance
        database: Neo4j database name
        logger: Optional logger instance
    """
    return _run_constraints(driver, shipment_index_statements(), database=database, log=logger)
