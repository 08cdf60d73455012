"""Run the meter CLI with ``python -m lufs_meter``."""

from __future__ import annotations

import sys


def _run_meter_cli() -> int:
    from . import cli

    cli.main()
    return 0


if __name__ == "__main__":
    sys.exit(_run_meter_cli())
