"""
CLI command entry points for shipment_matching.

These functions are registered as console scripts in pyproject.toml.
Each function delegates to the corresponding script in scripts/.
"""

import subprocess
import sys
from pathlib import Path


def _run_script(script_name: str) -> int:
    """
    Helper to run a script with arguments.

    Args:
        script_name: Name of script file (without .py extension)

    Returns:
        The script's exit code
    """
    script = Path(__file__).parent.parent.parent / "scripts" / f"{script_name}.py"
    # sys.argv[1:] passed as list (not shell=True), arguments validated by argparse
    completed = subprocess.run([sys.executable, str(script)] + sys.argv[1:], check=False)
    return completed.returncode


def run_match_invoice():
    """Entry point for match-invoice command."""
    sys.exit(_run_script("match_invoice"))
