"""
FastAPI routes for the TMA Insights dashboard.

PURPOSE: Thin route handlers that delegate to presenters.
AI CONTEXT: Routes should be simple - business logic lives in presenters and the engine.

ROUTE STRUCTURE:
- / : Main dashboard page (full HTML)
- /health : Liveness check
- /partials/* : htmx partial updates
- /charts/* : PNG chart images
- /api/* : JSON endpoints for programmatic access
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, JSONResponse, Response

from ..__version__ import __version__
from ..presenters import ChartPresenter, ReportPresenter
from ..statistics import StatisticsEngine
from ..storage import DatasetStore

if TYPE_CHECKING:
    from ..achievements import AwardsDisplay
    from ..advice import AdviceResult
    from ..models import Award
    from ..presenters import (
        DashboardOverview,
        DaypartsViewModel,
        PausedViewModel,
        SummaryViewModel,
        TransactionRowViewModel,
    )

__all__ = [
    "router",
    "get_store",
    "get_statistics",
    "get_report_presenter",
    "get_chart_presenter",
]

router = APIRouter()

_DASHBOARD_CSS = """
:root {
    --bg: #0f172a;
    --surface: #1e293b;
    --border: #334155;
    --text: #f1f5f9;
    --text-muted: #94a3b8;
    --good: #22c55e;
    --warn: #f59e0b;
    --bad: #ef4444;
}
* { box-sizing: border-box; }
body {
    margin: 0;
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
}
.container { max-width: 1200px; margin: 0 auto; padding: 1.5rem; }
header { display: flex; justify-content: space-between; align-items: center; }
h1 { font-size: 1.5rem; margin: 0; }
h2 { font-size: 1rem; margin: 0 0 0.75rem 0; color: var(--text-muted); }
.grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(320px, 1fr)); gap: 1rem; margin-top: 1rem; }
.panel { background: var(--surface); border: 1px solid var(--border); border-radius: 0.75rem; padding: 1rem; }
.metric { font-size: 2rem; font-weight: 700; }
.metric-label, .muted { color: var(--text-muted); font-size: 0.875rem; }
.good { color: var(--good); }
.warn { color: var(--warn); }
.bad { color: var(--bad); }
.pill { display: inline-block; padding: 0.1rem 0.5rem; border-radius: 999px; font-size: 0.75rem; border: 1px solid currentColor; margin-right: 0.5rem; }
.award { display: flex; gap: 0.75rem; padding: 0.5rem 0; border-bottom: 1px solid var(--border); }
.award.locked { opacity: 0.55; }
.award-icon { font-size: 1.5rem; }
table { width: 100%; border-collapse: collapse; font-size: 0.875rem; }
th, td { text-align: left; padding: 0.35rem 0.5rem; border-bottom: 1px solid var(--border); }
.chart-container img { width: 100%; border-radius: 0.5rem; background: #fff; }
footer { margin-top: 2rem; padding-top: 1rem; border-top: 1px solid var(--border); color: var(--text-muted); font-size: 0.875rem; text-align: center; }
"""

# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_store() -> DatasetStore:
    """
    Create the dataset store for a request.

    A fresh store per request means every page load re-reads the dataset
    file, so the dashboard follows the main app's writes.

    Returns:
        DatasetStore pointed at Config.get_data_file().
    """
    return DatasetStore()


def get_statistics() -> StatisticsEngine:
    return StatisticsEngine()


def get_report_presenter(
    store: Annotated[DatasetStore, Depends(get_store)],
    statistics: Annotated[StatisticsEngine, Depends(get_statistics)],
) -> ReportPresenter:
    """
    Assemble the report presenter from the injected store and engine.

    Tests override get_store (app.dependency_overrides) to point the whole
    dashboard at an in-memory dataset.
    """
    return ReportPresenter(store, statistics)


def get_chart_presenter(
    store: Annotated[DatasetStore, Depends(get_store)],
) -> ChartPresenter:
    return ChartPresenter(store)


# ============================================================================
# Full Page Routes
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
    show_locked: bool = False,
) -> HTMLResponse:
    """
    Render the main dashboard page.

    Business context: This is the at-a-glance view of the day: balance,
    where time went by daypart, which awards are in reach and what to
    adjust next. Panels refresh through htmx partials.

    Args:
        presenter: ReportPresenter injected via FastAPI Depends.
        show_locked: Initial state of the "show locked awards" toggle.

    Returns:
        HTMLResponse with the complete dashboard page.
    """
    overview = presenter.get_overview(show_locked=show_locked)
    html = _render_dashboard_html(overview)
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


# ============================================================================
# Partial Routes (htmx)
# ============================================================================


@router.get("/partials/summary", response_class=HTMLResponse)
async def summary_partial(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> HTMLResponse:
    html = _render_summary_panel(presenter.get_summary())
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


@router.get("/partials/dayparts", response_class=HTMLResponse)
async def dayparts_partial(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> HTMLResponse:
    html = _render_dayparts_panel(presenter.get_dayparts())
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


@router.get("/partials/awards", response_class=HTMLResponse)
async def awards_partial(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
    show_locked: bool = False,
) -> HTMLResponse:
    """Awards panel; the toggle link re-requests this partial with show_locked flipped."""
    html = _render_awards_panel(presenter.get_awards(show_locked=show_locked))
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


@router.get("/partials/advice", response_class=HTMLResponse)
async def advice_partial(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> HTMLResponse:
    html = _render_advice_panel(presenter.get_advice())
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


@router.get("/partials/recent", response_class=HTMLResponse)
async def recent_partial(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> HTMLResponse:
    html = _render_recent_panel(presenter.get_recent())
    return HTMLResponse(content=html, media_type="text/html; charset=utf-8")


# ============================================================================
# Chart Routes
# ============================================================================


@router.get("/charts/balance.png")
async def balance_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
) -> Response:
    """
    Serve the cumulative balance chart.

    Returns:
        PNG (image/png) when matplotlib is available, otherwise an SVG
        placeholder (image/svg+xml).
    """
    try:
        png_bytes = presenter.render_balance_chart()
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        return Response(content=_placeholder_chart_svg("Saldo"), media_type="image/svg+xml")


@router.get("/charts/histogram.png")
async def histogram_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
) -> Response:
    try:
        png_bytes = presenter.render_histogram_chart()
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        return Response(
            content=_placeholder_chart_svg("Histograma"), media_type="image/svg+xml"
        )


# ============================================================================
# JSON API Routes
# ============================================================================


@router.get("/api/summary")
async def api_summary(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    """
    Get headline numbers as JSON.

    Example:
        >>> # GET /api/summary
        >>> {"balanceSeconds": -42, "count": 17, "averageDifference": -2, ...}
    """
    return presenter.get_summary().to_dict()


@router.get("/api/dayparts")
async def api_dayparts(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return presenter.get_dayparts().to_dict()


@router.get("/api/awards")
async def api_awards(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
    show_locked: bool = False,
) -> dict[str, object]:
    """
    Get the awards panel as JSON.

    Args:
        show_locked: Include locked awards (with unlock hints).

    Returns:
        Dict with unlocked, locked, unlockedCount, totalCount, showLocked
        and headline.
    """
    return presenter.get_awards(show_locked=show_locked).to_dict()


@router.get("/api/advice")
async def api_advice(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return presenter.get_advice().to_dict()


@router.get("/api/charts/balance")
async def api_balance_series(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return presenter.get_balance_series().to_dict()


@router.get("/api/charts/histogram")
async def api_histogram(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return {"bins": [b.to_dict() for b in presenter.get_histogram()]}


@router.get("/api/recent")
async def api_recent(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return {"transactions": [row.to_dict() for row in presenter.get_recent()]}


@router.get("/api/paused")
async def api_paused(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
) -> dict[str, object]:
    return presenter.get_paused().to_dict()


@router.get("/api/report")
async def api_report(
    presenter: Annotated[ReportPresenter, Depends(get_report_presenter)],
    show_locked: bool = False,
) -> dict[str, str]:
    """Same text report as `tma-insights report`, wrapped in JSON."""
    return {"report": presenter.get_report_text(show_locked=show_locked)}


@router.get("/api/export")
async def api_export(
    store: Annotated[DatasetStore, Depends(get_store)],
) -> JSONResponse:
    """
    Download the current dataset as an export document.

    The document uses the field names the import path expects, so it can
    be loaded back with `tma-insights report FILE`.

    Returns:
        JSONResponse with a Content-Disposition attachment header named
        TMA_Compensator_<date>.json.
    """
    snapshot = store.load()
    return JSONResponse(
        content=store.export_document(snapshot),
        headers={"Content-Disposition": f'attachment; filename="{store.export_filename()}"'},
    )


# ============================================================================
# Template Rendering Helpers
# ============================================================================


def _placeholder_chart_svg(title: str) -> bytes:
    """
    Placeholder SVG served when matplotlib is unavailable.

    Example:
        >>> b"Saldo" in _placeholder_chart_svg("Saldo")
        True
    """
    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="200">
        <rect width="100%" height="100%" fill="#f1f5f9"/>
        <text x="50%" y="50%" text-anchor="middle" fill="#64748b" font-size="16">
            {escape(title)} (instale matplotlib)
        </text>
    </svg>"""
    return svg.encode("utf-8")


def _render_summary_panel(summary: SummaryViewModel) -> str:
    top = "".join(
        f"<li>{escape(item)}: {count}</li>" for item, count in summary.top_items
    )
    return f"""<h2>📊 Resumo</h2>
        <div class="metric {summary.balance_class}">{summary.balance_display}</div>
        <div class="metric-label">Saldo do dia (margem ±10 min)</div>
        <div style="margin-top: 1rem; font-size: 0.875rem;">
            <div>Contas: {summary.count}</div>
            <div>Média (Gasto - TMA): {summary.average_display}</div>
            <div>Tempo gasto: {summary.time_spent_display}</div>
            <div>Pausadas: {summary.paused_display}</div>
        </div>
        <ul class="muted">{top}</ul>"""


def _render_dayparts_panel(dayparts: DaypartsViewModel) -> str:
    if dayparts.empty_message:
        return f'<h2>🕒 Períodos do dia</h2><div class="muted">{escape(dayparts.empty_message)}</div>'

    rows = ""
    for r in dayparts.rows:
        marker = " 🏁" if r.is_best else (" 🐢" if r.is_worst else "")
        rows += f"""<tr>
            <td>{escape(r.label)}{marker}</td>
            <td class="muted">{escape(r.range_label)}</td>
            <td>{r.count}</td>
            <td>{r.avg_spent_display}</td>
            <td>{r.avg_diff_display}</td>
            <td>{r.pct_under}%</td>
            <td class="{r.tone}">{escape(r.badge)}</td>
        </tr>"""

    contrast = ""
    if dayparts.best_label and dayparts.worst_label:
        contrast = (
            f'<div class="muted">Mais rápido: {escape(dayparts.best_label)} • '
            f"Mais lento: {escape(dayparts.worst_label)}</div>"
        )
    return f"""<h2>🕒 Períodos do dia</h2>
        <table>
            <thead><tr><th>Período</th><th></th><th>Contas</th><th>Média gasto</th>
            <th>Média (Gasto - TMA)</th><th>≤ TMA</th><th></th></tr></thead>
            <tbody>{rows}</tbody>
        </table>
        {contrast}"""


def _render_award(a: Award, locked: bool) -> str:
    css = "award locked" if locked else "award"
    icon = "🔒" if locked else escape(a.icon)
    return f"""<div class="{css}" title="{escape(a.detailed_explanation)}">
            <div class="award-icon">{icon}</div>
            <div>
                <div><b>{escape(a.title)}</b></div>
                <div class="muted">{escape(a.short_description)}</div>
            </div>
        </div>"""


def _render_awards_panel(awards: AwardsDisplay) -> str:
    """
    Render the awards panel with its "show locked" toggle.

    The toggle is an htmx link that swaps this panel for the same partial
    with show_locked flipped.
    """
    toggle_to = "false" if awards.show_locked else "true"
    toggle_label = "Esconder bloqueados" if awards.show_locked else "Mostrar bloqueados"
    if awards.total_count and not awards.unlocked and not awards.locked:
        body = '<div class="muted">Nenhum award desbloqueado ainda.</div>'
    else:
        body = "".join(_render_award(a, False) for a in awards.unlocked)
        body += "".join(_render_award(a, True) for a in awards.locked)
    return f"""<h2>🏆 Awards</h2>
        <div class="metric-label">{escape(awards.headline)}
            <a href="#" hx-get="/partials/awards?show_locked={toggle_to}"
               hx-target="#awards-panel" hx-swap="innerHTML">{toggle_label}</a>
        </div>
        {body}"""


def _render_advice_panel(advice: AdviceResult) -> str:
    if advice.is_empty:
        return f"""<h2>💡 Sugestões</h2>
            <div class="muted">{escape(advice.empty_suggestions_message)}</div>
            <h2 style="margin-top: 1rem;">🎲 Curiosidades</h2>
            <div class="muted">{escape(advice.empty_fun_message)}</div>"""

    suggestions = "".join(
        f'<p title="{escape(s.details)}"><span class="pill {s.tone}">{escape(s.pill)}</span>'
        f"{escape(s.text)}</p>"
        for s in advice.suggestions
    )
    facts = "".join(
        f'<p title="{escape(f.details)}"><span class="pill {f.tone}">{escape(f.pill)}</span>'
        f"{escape(f.text)}</p>"
        for f in advice.fun_facts
    )
    return f"""<h2>💡 Sugestões</h2>
        {suggestions}
        <h2 style="margin-top: 1rem;">🎲 Curiosidades</h2>
        {facts}"""


def _render_recent_panel(rows: list[TransactionRowViewModel]) -> str:
    if not rows:
        return '<h2>🧾 Últimas contas</h2><div class="muted">Sem transações ainda.</div>'
    body = "".join(
        f"""<tr>
            <td>{escape(r.label)}</td>
            <td>{r.tma_display}</td>
            <td>{r.spent_display}</td>
            <td class="{r.diff_class}">{r.diff_display}</td>
            <td class="muted">{escape(r.timestamp)}</td>
        </tr>"""
        for r in rows
    )
    return f"""<h2>🧾 Últimas contas</h2>
        <table>
            <thead><tr><th>Conta</th><th>TMA</th><th>Gasto</th><th>Diferença</th><th>Quando</th></tr></thead>
            <tbody>{body}</tbody>
        </table>"""


def _render_paused_panel(paused: PausedViewModel) -> str:
    if not paused.rows:
        return '<h2>⏸️ Pausadas</h2><div class="muted">Nenhuma conta pausada.</div>'
    items = "".join(
        f"<li>{escape(r.label)}: {r.accumulated_display}</li>" for r in paused.rows
    )
    return f"""<h2>⏸️ Pausadas ({paused.count}, {paused.total_display})</h2>
        <ul>{items}</ul>"""


def _render_dashboard_html(overview: DashboardOverview) -> str:
    """
    Render the complete dashboard HTML page.

    Args:
        overview: DashboardOverview with every panel's view model.

    Returns:
        Complete HTML document with embedded CSS and htmx refresh triggers.

    Example:
        >>> html = _render_dashboard_html(presenter.get_overview())
        >>> "<!DOCTYPE html>" in html
        True
    """
    show_locked = "true" if overview.awards.show_locked else "false"
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>TMA Insights - Relatório</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>⏱️ TMA Insights</h1>
            <a class="muted" href="/api/export">Exportar JSON</a>
        </header>

        <div class="grid">
            <div class="panel" id="summary-panel"
                 hx-get="/partials/summary" hx-trigger="every 30s" hx-swap="innerHTML">
                {_render_summary_panel(overview.summary)}
            </div>
            <div class="panel" id="dayparts-panel"
                 hx-get="/partials/dayparts" hx-trigger="every 30s" hx-swap="innerHTML">
                {_render_dayparts_panel(overview.dayparts)}
            </div>
        </div>

        <div class="grid">
            <div class="panel chart-container">
                <h2>📈 Saldo acumulado</h2>
                <img src="/charts/balance.png" alt="Saldo acumulado">
            </div>
            <div class="panel chart-container">
                <h2>📊 Distribuição de (Gasto - TMA)</h2>
                <img src="/charts/histogram.png" alt="Histograma">
            </div>
        </div>

        <div class="grid">
            <div class="panel" id="awards-panel"
                 hx-get="/partials/awards?show_locked={show_locked}" hx-trigger="every 30s"
                 hx-swap="innerHTML">
                {_render_awards_panel(overview.awards)}
            </div>
            <div class="panel" id="advice-panel"
                 hx-get="/partials/advice" hx-trigger="every 30s" hx-swap="innerHTML">
                {_render_advice_panel(overview.advice)}
            </div>
        </div>

        <div class="grid">
            <div class="panel" id="recent-panel"
                 hx-get="/partials/recent" hx-trigger="every 30s" hx-swap="innerHTML">
                {_render_recent_panel(overview.recent)}
            </div>
            <div class="panel" id="paused-panel">
                {_render_paused_panel(overview.paused)}
            </div>
        </div>

        <footer>
            TMA Insights v{__version__} &bull; Powered by FastAPI + htmx
        </footer>
    </div>
</body>
</html>"""
