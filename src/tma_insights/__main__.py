"""
Package entry point for python -m execution.

USAGE:
    python -m tma_insights                          # Report on the default dataset
    python -m tma_insights report day.json          # Print report
    python -m tma_insights dashboard                # Launch web dashboard
    python -m tma_insights export in.json out.json  # Normalize an export
"""

import sys

from tma_insights.cli import main

if __name__ == "__main__":
    sys.exit(main())
