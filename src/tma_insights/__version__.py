"""Version information for tma-insights."""

__version__ = "1.0.0"
__version_date__ = "2026-10-17"

__title__ = "tma_insights"
__description__ = "Daily TMA report engine: statistics, dayparts, achievements, advice and charts"
__url__ = "https://github.com/tma-compensator/tma-insights"

__author__ = "TMA Compensator contributors"

__license__ = "MIT"
__copyright__ = "Copyright 2026 TMA Compensator contributors"

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
