"""
CLI utilities for shipment_matching.

This package provides shared functionality for scripts:
- Logging setup
- Argument parsing
- Command entry points
"""

from shipment_matching.cli.args import add_execute_argument, add_match_arguments
from shipment_matching.cli.commands import run_match_invoice
from shipment_matching.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "print_dry_run_header",
    "print_execute_header",
    # Arguments
    "add_execute_argument",
    "add_match_arguments",
    # Commands
    "run_match_invoice",
]
