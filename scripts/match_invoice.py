#!/usr/bin/env python3
"""
Match carrier invoice line items to booked shipments.

Reads a parsed invoice ({"shipments": [...]} or a bare list of line items),
matches every line against the shipment store and prints a summary.

Shipments come from Neo4j, or from a JSON file with --shipments-file
(no database needed).

Usage:
    python scripts/match_invoice.py invoice.json --company-id ACME          # Dry-run
    python scripts/match_invoice.py invoice.json --company-id ACME --execute  # Also audit to Neo4j
    python scripts/match_invoice.py invoice.json --shipments-file shipments.json --all-companies
"""

import argparse
import json
import logging
import sys

from shipment_matching.audit import LoggingAuditLogger, Neo4jAuditLogger
from shipment_matching.cli import (
    add_execute_argument,
    add_match_arguments,
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from shipment_matching.config import get_settings
from shipment_matching.exceptions import StoreUnavailableError
from shipment_matching.matching import InvoiceMatchReport, ScopeFilter, ShipmentMatcher
from shipment_matching.neo4j import connect_to_store, create_shipment_indexes
from shipment_matching.store import InMemoryShipmentStore, Neo4jShipmentStore
from shipment_matching.utils.rate_limiting import RateLimiter


def load_invoice_lines(path) -> list:
    """Load line items from an invoice JSON file."""
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        return list(payload.get("shipments") or [])
    return list(payload)


def print_summary(report: InvoiceMatchReport, logger: logging.Logger):
    """Log per-line outcomes and the invoice totals."""
    logger.info("")
    logger.info("-" * 70)
    for index, result in enumerate(report.results):
        if result is None:
            logger.info(f"  [{index}] ✗ {report.errors.get(index, 'failed')}")
            continue
        best = result.best_match
        matched = best.shipment.shipment_id if best else "-"
        marker = "⚠" if result.review_required else "✓"
        logger.info(
            f"  [{index}] {marker} {result.billing_record.shipment_id or '<no id>'} -> "
            f"{matched} ({result.status.value}, {result.confidence:.2f})"
        )
    logger.info("-" * 70)

    stats = report.stats
    logger.info(f"  Lines: {stats.get('total', 0)}")
    for status in ("EXCELLENT", "GOOD", "FAIR", "POOR", "NO_MATCH"):
        logger.info(f"    {status}: {stats.get(status, 0)}")
    logger.info(f"  Auto-applicable: {stats.get('auto_applicable', 0)}")
    logger.info(f"  Require review: {stats.get('require_review', 0)}")
    if report.errors:
        logger.info(f"  Failed: {len(report.errors)}")


def main():
    """Match an invoice file."""
    parser = argparse.ArgumentParser(description="Match invoice line items to shipments")
    add_match_arguments(parser)
    add_execute_argument(parser)
    parser.add_argument("-v", "--verbose", action="store_true", help="Show lookup details")
    args = parser.parse_args()

    logger = setup_logging("match_invoice", execute=args.execute, verbose=args.verbose)
    settings = get_settings()

    if not args.invoice.exists():
        logger.error(f"Invoice file not found: {args.invoice}")
        sys.exit(1)

    lines = load_invoice_lines(args.invoice)

    if args.all_companies:
        scope = ScopeFilter.unrestricted()
    else:
        scope = ScopeFilter.of(args.company_id)
        if not args.company_id:
            logger.warning("⚠ No --company-id given: every shipment will be out of scope")

    if args.execute:
        print_execute_header("Invoice Shipment Matching", logger)
    else:
        print_dry_run_header("Invoice Shipment Matching", logger)
    logger.info(f"Invoice: {args.invoice} ({len(lines)} line items)")

    driver = None
    database = None
    if args.shipments_file is None or args.execute:
        try:
            driver, database = connect_to_store()
        except (ImportError, ValueError, StoreUnavailableError) as e:
            logger.error(f"✗ {e}")
            sys.exit(1)
        logger.info(f"✓ Connected to Neo4j ({database})")
        if args.execute and args.shipments_file is None:
            create_shipment_indexes(driver, database=database, logger=logger)

    try:
        if args.shipments_file is not None:
            store = InMemoryShipmentStore.from_json_file(args.shipments_file)
            logger.info(f"Shipments: {args.shipments_file} ({len(store)} shipments)")
        else:
            limiter = None
            if settings.store_requests_per_second:
                limiter = RateLimiter(settings.store_requests_per_second, source_name="neo4j")
            store = Neo4jShipmentStore(driver, database=database, rate_limiter=limiter)
            logger.info(f"Shipments: Neo4j database {database}")

        if args.execute:
            audit_logger = Neo4jAuditLogger(driver, database=database)
        else:
            audit_logger = LoggingAuditLogger()

        matcher = ShipmentMatcher(store, settings=settings, audit_logger=audit_logger)
        report = matcher.match_invoice(
            lines,
            scope,
            args.carrier,
            caller_id=args.user_id,
            timeout=args.timeout,
            show_progress=True,
        )

        print_summary(report, logger)

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, default=str)
            logger.info(f"Report written to {args.output}")

        logger.info("=" * 70)
        logger.info("✓ Complete!" if not report.requires_review else "⚠ Review required")
        logger.info("=" * 70)
    finally:
        if driver is not None:
            driver.close()


if __name__ == "__main__":
    main()
