"""
Presenters for the TMA Insights dashboard.

PURPOSE: Testable layer between the dataset store / engine and the UI.
AI CONTEXT: Data transformation only. Rendering lives in web/routes.py and the CLI.

DESIGN PRINCIPLES:
1. Presenters receive a store, load a fresh snapshot per call, return view models
2. View models carry display strings so templates stay dumb
3. ChartPresenter is the only place that imports matplotlib (lazily)

USAGE:
    presenter = ReportPresenter(DatasetStore(), StatisticsEngine())
    overview = presenter.get_overview(show_locked=True)
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .achievements import AwardsDisplay, evaluate_awards, select_awards_for_display
from .advice import AdviceResult, build_advice
from .charts import BalanceSeries, BinCount, prepare_balance_series, prepare_histogram
from .config import Config
from .dayparts import classify_dayparts
from .models import DatasetSnapshot, PausedWorkEntry, TransactionRecord
from .timeutils import (
    format_signed_compact,
    seconds_to_human,
    seconds_to_short,
    seconds_to_time,
)

if TYPE_CHECKING:
    from .statistics import StatisticsEngine
    from .storage import DatasetStore

__all__ = [
    "SummaryViewModel",
    "DaypartRowViewModel",
    "DaypartsViewModel",
    "TransactionRowViewModel",
    "PausedRowViewModel",
    "PausedViewModel",
    "DashboardOverview",
    "ReportPresenter",
    "ChartPresenter",
]

# Chart color palette shared by both charts
TONE_COLORS: dict[str, str] = {
    "good": "#22c55e",
    "warn": "#f59e0b",
    "bad": "#ef4444",
}
LINE_COLOR = "#3b82f6"
ZERO_LINE_COLOR = "#94a3b8"
MARGIN_BAND_COLOR = "#22c55e"


def _diff_class(seconds: float) -> str:
    if seconds < 0:
        return "good"
    if seconds > 0:
        return "bad"
    return "neutral"


@dataclass
class SummaryViewModel:
    """Headline numbers for the day."""

    balance_seconds: float
    count: int
    sum_difference: float
    average_difference: int
    sum_time_spent: int
    top_items: list[tuple[str, int]]
    paused_count: int
    paused_total_seconds: int

    @property
    def balance_display(self) -> str:
        return seconds_to_time(self.balance_seconds)

    @property
    def within_margin(self) -> bool:
        return abs(self.balance_seconds) <= Config.BALANCE_MARGIN_SECONDS

    @property
    def balance_class(self) -> str:
        """
        CSS class for the balance badge.

        The goal is staying inside ±10 min, not being negative, so a small
        positive balance is still "good".

        Example:
            >>> SummaryViewModel(300, 1, 300, 300, 900, [], 0, 0).balance_class
            'good'
        """
        return "good" if self.within_margin else "bad"

    @property
    def average_display(self) -> str:
        return format_signed_compact(self.average_difference) or "0s"

    @property
    def time_spent_display(self) -> str:
        return seconds_to_human(self.sum_time_spent)

    @property
    def paused_display(self) -> str:
        return f"{self.paused_count} ({seconds_to_human(self.paused_total_seconds)})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "balanceSeconds": self.balance_seconds,
            "balanceDisplay": self.balance_display,
            "withinMargin": self.within_margin,
            "count": self.count,
            "sumDifference": self.sum_difference,
            "averageDifference": self.average_difference,
            "sumTimeSpent": self.sum_time_spent,
            "topItems": [{"item": item, "count": count} for item, count in self.top_items],
            "pausedCount": self.paused_count,
            "pausedTotalSeconds": self.paused_total_seconds,
        }


@dataclass
class DaypartRowViewModel:
    key: str
    label: str
    range_label: str
    count: int
    avg_spent: float
    avg_diff: float
    pct_under: int
    tone: str
    badge: str
    is_best: bool = False
    is_worst: bool = False

    @property
    def avg_spent_display(self) -> str:
        return seconds_to_short(self.avg_spent)

    @property
    def avg_diff_display(self) -> str:
        return format_signed_compact(self.avg_diff) or "0s"


@dataclass
class DaypartsViewModel:
    """Daypart table; empty_message is set when there is nothing to show."""

    rows: list[DaypartRowViewModel] = field(default_factory=list)
    best_key: str | None = None
    worst_key: str | None = None
    best_label: str | None = None
    worst_label: str | None = None
    empty_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [
                {
                    "key": r.key,
                    "label": r.label,
                    "range": r.range_label,
                    "count": r.count,
                    "avgSpent": r.avg_spent,
                    "avgDiff": r.avg_diff,
                    "pctUnder": r.pct_under,
                    "tone": r.tone,
                    "isBest": r.is_best,
                    "isWorst": r.is_worst,
                }
                for r in self.rows
            ],
            "best": self.best_key,
            "worst": self.worst_key,
            "bestLabel": self.best_label,
            "worstLabel": self.worst_label,
            "emptyMessage": self.empty_message,
        }


@dataclass
class TransactionRowViewModel:
    label: str
    tma: int
    time_spent: int
    difference: float | None
    timestamp: str

    @property
    def tma_display(self) -> str:
        return seconds_to_time(self.tma)

    @property
    def spent_display(self) -> str:
        return seconds_to_time(self.time_spent)

    @property
    def diff_display(self) -> str:
        if self.difference is None:
            return "—"
        return format_signed_compact(self.difference) or "0s"

    @property
    def diff_class(self) -> str:
        return _diff_class(self.difference or 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "tma": self.tma,
            "timeSpent": self.time_spent,
            "difference": self.difference,
            "timestamp": self.timestamp,
        }


@dataclass
class PausedRowViewModel:
    label: str
    accumulated_seconds: int
    updated_at: str

    @property
    def accumulated_display(self) -> str:
        return seconds_to_time(self.accumulated_seconds)


@dataclass
class PausedViewModel:
    count: int = 0
    total_seconds: int = 0
    rows: list[PausedRowViewModel] = field(default_factory=list)

    @property
    def total_display(self) -> str:
        return seconds_to_human(self.total_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "totalSeconds": self.total_seconds,
            "entries": [
                {
                    "label": r.label,
                    "accumulatedSeconds": r.accumulated_seconds,
                    "updatedAtIso": r.updated_at,
                }
                for r in self.rows
            ],
        }


@dataclass
class DashboardOverview:
    """Complete view model for the dashboard page."""

    summary: SummaryViewModel
    dayparts: DaypartsViewModel
    awards: AwardsDisplay
    advice: AdviceResult
    recent: list[TransactionRowViewModel] = field(default_factory=list)
    paused: PausedViewModel = field(default_factory=PausedViewModel)
    report_text: str = ""


def _transaction_row(tx: TransactionRecord) -> TransactionRowViewModel:
    return TransactionRowViewModel(
        label=tx.label,
        tma=tx.tma,
        time_spent=tx.time_spent,
        difference=tx.difference,
        timestamp=tx.timestamp,
    )


def _paused_row(entry: PausedWorkEntry) -> PausedRowViewModel:
    return PausedRowViewModel(
        label=f"{entry.item} • {entry.type}",
        accumulated_seconds=entry.accumulated_seconds,
        updated_at=entry.updated_at,
    )


class ReportPresenter:
    """
    Presenter for the dashboard and the JSON API.

    Every public method reloads the dataset, so the dashboard follows the
    file as the main app rewrites it.
    """

    def __init__(self, store: DatasetStore, statistics: StatisticsEngine) -> None:
        """
        Args:
            store: Source of snapshots (DatasetStore or a test double).
            statistics: Engine used for counters and the text report.
        """
        self.store = store
        self.statistics = statistics

    def get_snapshot(self) -> DatasetSnapshot:
        return self.store.load()

    def get_overview(self, show_locked: bool = False) -> DashboardOverview:
        """
        Build every dashboard panel from a single snapshot read.

        Business context: One read per page render keeps all panels
        consistent with each other even if the file changes mid-request.

        Args:
            show_locked: Whether the awards panel lists locked awards.

        Returns:
            DashboardOverview; an empty dataset yields zero values and the
            empty-state messages.
        """
        snapshot = self.get_snapshot()
        return DashboardOverview(
            summary=self._build_summary(snapshot),
            dayparts=self._build_dayparts(snapshot),
            awards=self._build_awards(snapshot, show_locked),
            advice=build_advice(snapshot.transactions, snapshot.balance_seconds),
            recent=self._build_recent(snapshot),
            paused=self._build_paused(snapshot),
            report_text=self.statistics.generate_summary_report(snapshot, show_locked),
        )

    def get_summary(self) -> SummaryViewModel:
        return self._build_summary(self.get_snapshot())

    def get_dayparts(self) -> DaypartsViewModel:
        return self._build_dayparts(self.get_snapshot())

    def get_awards(self, show_locked: bool = False) -> AwardsDisplay:
        return self._build_awards(self.get_snapshot(), show_locked)

    def get_advice(self) -> AdviceResult:
        snapshot = self.get_snapshot()
        return build_advice(snapshot.transactions, snapshot.balance_seconds)

    def get_recent(self) -> list[TransactionRowViewModel]:
        return self._build_recent(self.get_snapshot())

    def get_paused(self) -> PausedViewModel:
        return self._build_paused(self.get_snapshot())

    def get_balance_series(self) -> BalanceSeries:
        return prepare_balance_series(self.get_snapshot().transactions_oldest_first)

    def get_histogram(self) -> list[BinCount]:
        return prepare_histogram(tx.diff_or_zero for tx in self.get_snapshot().transactions)

    def get_report_text(self, show_locked: bool = False) -> str:
        return self.statistics.generate_summary_report(self.get_snapshot(), show_locked)

    def _build_summary(self, snapshot: DatasetSnapshot) -> SummaryViewModel:
        stats = self.statistics.compute_stats(snapshot.transactions)
        paused_count, paused_total = self.statistics.paused_summary(snapshot.paused_work)
        return SummaryViewModel(
            balance_seconds=snapshot.balance_seconds,
            count=stats.count,
            sum_difference=stats.sum_difference,
            average_difference=stats.average_difference,
            sum_time_spent=stats.sum_time_spent,
            top_items=stats.top_items,
            paused_count=paused_count,
            paused_total_seconds=paused_total,
        )

    def _build_dayparts(self, snapshot: DatasetSnapshot) -> DaypartsViewModel:
        summary = classify_dayparts(snapshot.transactions)
        if summary.is_empty:
            return DaypartsViewModel(empty_message="Sem períodos ainda.")

        best_key = summary.best.key if summary.has_contrast and summary.best else None
        worst_key = summary.worst.key if summary.has_contrast and summary.worst else None
        rows = [
            DaypartRowViewModel(
                key=b.key,
                label=b.label,
                range_label=b.range_label,
                count=b.count,
                avg_spent=b.avg_spent,
                avg_diff=b.avg_diff,
                pct_under=b.pct_under,
                tone=b.tone,
                badge=b.badge,
                is_best=b.key == best_key,
                is_worst=b.key == worst_key,
            )
            for b in summary.buckets
        ]
        return DaypartsViewModel(
            rows=rows,
            best_key=best_key,
            worst_key=worst_key,
            best_label=summary.best.label if best_key and summary.best else None,
            worst_label=summary.worst.label if worst_key and summary.worst else None,
        )

    def _build_awards(self, snapshot: DatasetSnapshot, show_locked: bool) -> AwardsDisplay:
        return select_awards_for_display(evaluate_awards(snapshot), show_locked=show_locked)

    def _build_recent(self, snapshot: DatasetSnapshot) -> list[TransactionRowViewModel]:
        return [_transaction_row(tx) for tx in self.statistics.recent_transactions(snapshot.transactions)]

    def _build_paused(self, snapshot: DatasetSnapshot) -> PausedViewModel:
        count, total = self.statistics.paused_summary(snapshot.paused_work)
        rows = [_paused_row(e) for e in self.statistics.paused_entries(snapshot.paused_work)]
        return PausedViewModel(count=count, total_seconds=total, rows=rows)


class ChartPresenter:
    """
    Presenter for chart images.

    Uses matplotlib for server-side chart rendering.
    Returns PNG images as bytes for the dashboard <img> tags.
    """

    def __init__(self, store: DatasetStore) -> None:
        self.store = store

    @staticmethod
    def _pyplot() -> Any:
        # Lazy import matplotlib to keep the engine importable without it
        import matplotlib

        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        return plt

    @staticmethod
    def _to_png(plt: Any, fig: Any) -> bytes:
        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()

    @staticmethod
    def _render_empty(plt: Any, message: str) -> Any:
        fig, ax = plt.subplots(figsize=(8, 3))
        ax.text(0.5, 0.5, message, ha="center", va="center", fontsize=14)
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.axis("off")
        return fig

    def render_balance_chart(self) -> bytes:
        """
        Render the cumulative balance as a line chart PNG.

        The ±10 min margin is shaded around the zero line. The x axis shows
        clock times when enough timestamps parse, otherwise transaction
        positions.

        Returns:
            PNG image as bytes (800x300 at 100 DPI).

        Raises:
            ImportError: If matplotlib is not installed. Caller should
                catch this and provide a fallback (e.g., placeholder SVG).
        """
        plt = self._pyplot()
        snapshot = self.store.load()
        series = prepare_balance_series(snapshot.transactions_oldest_first)

        if series.is_empty:
            return self._to_png(plt, self._render_empty(plt, "Sem transações para desenhar."))

        fig, ax = plt.subplots(figsize=(8, 3))
        if series.uses_time_axis:
            timed = [p for p in series.points if p.timestamp is not None]
            xs: list[Any] = [p.timestamp for p in timed]
            ys = [p.cumulative / 60 for p in timed]
            fig.autofmt_xdate()
        else:
            xs = [p.index + 1 for p in series.points]
            ys = [p.cumulative / 60 for p in series.points]

        margin_minutes = Config.BALANCE_MARGIN_SECONDS / 60
        ax.axhspan(-margin_minutes, margin_minutes, color=MARGIN_BAND_COLOR, alpha=0.08)
        ax.axhline(0, color=ZERO_LINE_COLOR, linewidth=1)
        ax.plot(xs, ys, color=LINE_COLOR, marker="o", markersize=3, linewidth=2)

        ax.set_ylabel("Saldo (min)")
        ax.set_title(f"Saldo acumulado ({format_signed_compact(series.final_value) or '0s'})")
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        return self._to_png(plt, fig)

    def render_histogram_chart(self) -> bytes:
        """
        Render the deviation histogram as a bar chart PNG.

        Bars are colored by bin tone: green at or under target, red over,
        amber for the bin around zero.

        Raises:
            ImportError: If matplotlib is not installed.
        """
        plt = self._pyplot()
        snapshot = self.store.load()
        if not snapshot.transactions:
            return self._to_png(plt, self._render_empty(plt, "Sem transações para desenhar."))

        bins = prepare_histogram(tx.diff_or_zero for tx in snapshot.transactions)
        fig, ax = plt.subplots(figsize=(8, 3))
        bars = ax.bar(
            [b.label for b in bins],
            [b.count for b in bins],
            color=[TONE_COLORS[b.tone] for b in bins],
            alpha=0.85,
        )
        for bar, b in zip(bars, bins, strict=True):
            if b.count:
                ax.text(
                    bar.get_x() + bar.get_width() / 2,
                    bar.get_height(),
                    str(b.count),
                    ha="center",
                    va="bottom",
                    fontsize=9,
                )

        ax.set_ylabel("Contas")
        ax.set_title("Distribuição de (Gasto - TMA)")
        ax.tick_params(axis="x", labelsize=8)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        return self._to_png(plt, fig)
