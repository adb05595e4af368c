"""
TMA Insights.

PURPOSE: Turn one day of timed work transactions into a report.
AI CONTEXT: The core is a pure engine - give it a DatasetSnapshot, get views back.

PACKAGE STRUCTURE:
- normalizer.py: Coerce raw JSON into typed records
- timeutils.py: Duration formatting and timestamp parsing
- statistics.py: Count/sum/average/top-items aggregation and text report
- dayparts.py: Time-of-day buckets
- achievements.py: Achievement rule catalog
- advice.py: Coaching suggestions and fun facts
- charts.py: Cumulative balance series and deviation histogram
- storage.py: Import/export of the dataset JSON document
- presenters.py: View models and matplotlib chart rendering
- web/: FastAPI dashboard
- cli.py: Command-line interface

QUICK START:
    # Print a report for an exported day
    tma-insights report TMA_Compensator_2026-10-17.json

    # Launch dashboard
    tma-insights dashboard --data TMA_Compensator_2026-10-17.json
"""

from tma_insights.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
