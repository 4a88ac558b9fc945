"""
Argument parsing utilities for shipment_matching CLI.

Provides standard argument patterns used across scripts.
"""

from pathlib import Path


def add_execute_argument(parser):
    """
    Add standard --execute argument to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Write audit entries to Neo4j (default is dry-run: log only)",
    )


def add_match_arguments(parser):
    """
    Add the invoice matching arguments to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "invoice",
        type=Path,
        help='Invoice JSON: {"shipments": [...]} or a list of line items',
    )
    parser.add_argument(
        "--shipments-file",
        type=Path,
        default=None,
        help="Match against shipments from a JSON file instead of Neo4j",
    )
    parser.add_argument(
        "--company-id",
        action="append",
        default=[],
        help="Company the caller may see (repeatable)",
    )
    parser.add_argument(
        "--all-companies",
        action="store_true",
        help="Unrestricted scope (superadmin)",
    )
    parser.add_argument(
        "--carrier",
        default=None,
        help="Only match shipments booked with this carrier",
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="Caller recorded in audit entries",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-line match deadline in seconds (default: MATCH_TIMEOUT_SECONDS)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the full report as JSON to this file",
    )
