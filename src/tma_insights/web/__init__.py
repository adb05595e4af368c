"""
Web dashboard module for TMA Insights.

PURPOSE: FastAPI-based report page with htmx for periodic refresh.
AI CONTEXT: Reads the dataset file on every request; never writes it.

FEATURES:
- Dashboard page: balance, dayparts, awards, suggestions, recent transactions
- Server-side chart rendering (matplotlib) with SVG fallback
- JSON endpoints mirroring every panel, plus the export document

USAGE:
    # Via CLI
    tma-insights dashboard --data tma_dataset.json

    # Programmatically
    from tma_insights.web import create_app
    app = create_app()
"""

from .app import create_app, run_dashboard

__all__ = ["create_app", "run_dashboard"]
