"""
Statistics engine for TMA Insights.

PURPOSE: Aggregate counters over a transaction list and assemble the text report.
AI CONTEXT: Pure data processing - no visualization, no I/O.

METRIC CATEGORIES:
1. Totals: count, sum of differences, sum of time spent
2. Averages: mean difference, rounded half away from zero like the web page
3. Frequency: the most frequent item labels
4. Paused work: number of entries and accumulated seconds

USAGE:
    engine = StatisticsEngine()
    stats = engine.compute_stats(snapshot.transactions)
    print(engine.generate_summary_report(snapshot))
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from .achievements import evaluate_awards, select_awards_for_display
from .advice import build_advice
from .config import Config
from .dayparts import classify_dayparts
from .models import DatasetSnapshot, PausedWorkEntry, PausedWorkMap, StatsSummary, TransactionRecord
from .timeutils import (
    format_signed,
    format_signed_compact,
    round_half_up,
    seconds_to_human,
    seconds_to_short,
    seconds_to_time,
)


class StatisticsEngine:
    """
    Calculator for daily TMA statistics.

    DESIGN:
    - Stateless: Each method operates on provided data
    - Pure: No side effects, only data transformation
    - Configurable: top-item limit from Config or constructor
    """

    def __init__(self, top_items_limit: int | None = None) -> None:
        """
        Initialize the engine.

        Args:
            top_items_limit: How many item labels compute_stats() ranks.
                Default: Config.TOP_ITEMS_LIMIT (6)
        """
        self.top_items_limit = (
            top_items_limit if top_items_limit is not None else Config.TOP_ITEMS_LIMIT
        )

    def compute_stats(self, transactions: Iterable[TransactionRecord]) -> StatsSummary:
        """
        Compute aggregate counters for a transaction list.

        The sum of differences is the literal sum of every stored difference
        (missing ones count as 0); it is not reconciled against the balance.
        Top items are ranked by descending count, ties keeping the order in
        which labels first appear.

        Args:
            transactions: Records in any order.

        Returns:
            StatsSummary. Empty input yields zeros and no top items.

        Example:
            >>> engine = StatisticsEngine()
            >>> stats = engine.compute_stats([tx_a, tx_b])
            >>> stats.count
            2
        """
        records = list(transactions)
        count = len(records)
        sum_difference = sum(tx.diff_or_zero for tx in records)
        sum_time_spent = sum(tx.time_spent for tx in records)
        average = round_half_up(sum_difference / count) if count else 0

        # Counter preserves first-seen order; sorted() is stable on ties
        frequency = Counter(tx.item or "—" for tx in records)
        ranked = sorted(frequency.items(), key=lambda pair: pair[1], reverse=True)

        return StatsSummary(
            count=count,
            sum_difference=sum_difference,
            average_difference=average,
            sum_time_spent=sum_time_spent,
            top_items=ranked[: self.top_items_limit],
        )

    def paused_summary(self, paused_work: PausedWorkMap) -> tuple[int, int]:
        """Number of paused entries and their accumulated seconds."""
        entries = [entry for values in paused_work.values() for entry in values]
        return len(entries), sum(entry.accumulated_seconds for entry in entries)

    def paused_entries(
        self, paused_work: PausedWorkMap, limit: int = Config.PAUSED_LIMIT
    ) -> list[PausedWorkEntry]:
        """Paused entries, most recently updated first."""
        entries = [entry for values in paused_work.values() for entry in values]
        entries.sort(key=lambda entry: entry.updated_at, reverse=True)
        return entries[:limit]

    def recent_transactions(
        self, transactions: Sequence[TransactionRecord], limit: int = Config.RECENT_LIMIT
    ) -> list[TransactionRecord]:
        """The newest `limit` transactions (input is newest first)."""
        return list(transactions[:limit])

    def generate_summary_report(self, snapshot: DatasetSnapshot, show_locked: bool = False) -> str:
        """
        Generate a plain-text report of the whole day.

        Combines the stats, daypart comparison, awards, coaching suggestions
        and fun facts into one terminal-friendly document.

        Business context: This is what `tma-insights report` prints. It is the
        quickest way to review a dataset file without starting the dashboard.

        Args:
            snapshot: Day of data.
            show_locked: Also list locked awards with their unlock hints.

        Returns:
            Multi-line text with emoji section headers.

        Example:
            >>> print(StatisticsEngine().generate_summary_report(snapshot))
            ==================================================
            TMA INSIGHTS - DAILY REPORT
            ...
        """
        stats = self.compute_stats(snapshot.transactions)
        dayparts = classify_dayparts(snapshot.transactions)
        awards = select_awards_for_display(evaluate_awards(snapshot), show_locked=show_locked)
        advice = build_advice(snapshot.transactions, snapshot.balance_seconds)
        paused_count, paused_total = self.paused_summary(snapshot.paused_work)

        lines = [
            "=" * 50,
            "TMA INSIGHTS - DAILY REPORT",
            "=" * 50,
            "",
            "📊 RESUMO",
            f"  • Saldo: {seconds_to_time(snapshot.balance_seconds)}",
            f"  • Contas: {stats.count}",
            f"  • Soma (Gasto - TMA): {format_signed(stats.sum_difference) or '00:00:00'}",
            f"  • Média (Gasto - TMA): {format_signed_compact(stats.average_difference) or '0s'}",
            f"  • Tempo gasto: {seconds_to_human(stats.sum_time_spent)}",
            f"  • Pausadas: {paused_count} ({seconds_to_human(paused_total)})",
        ]

        if stats.top_items:
            lines.extend(["", "📦 ITENS MAIS FREQUENTES"])
            for item, count in stats.top_items:
                lines.append(f"  • {item}: {count}")

        lines.extend(["", "🕒 PERÍODOS DO DIA"])
        if dayparts.is_empty:
            lines.append("  Sem períodos ainda.")
        for bucket in dayparts.buckets:
            lines.append(
                f"  • {bucket.label} ({bucket.range_label}): {bucket.count} contas, "
                f"média {seconds_to_short(bucket.avg_spent)}, "
                f"{format_signed_compact(bucket.avg_diff) or '0s'}, "
                f"{bucket.pct_under}% ≤ TMA [{bucket.badge}]"
            )
        if dayparts.has_contrast and dayparts.best and dayparts.worst:
            lines.append(
                f"  Mais rápido: {dayparts.best.label} • Mais lento: {dayparts.worst.label}"
            )

        lines.extend(["", f"🏆 AWARDS ({awards.unlocked_count}/{awards.total_count})"])
        for award in awards.unlocked:
            lines.append(f"  {award.icon} {award.title}: {award.short_description}")
        for award in awards.locked:
            lines.append(f"  🔒 {award.title}: {award.short_description}")

        lines.extend(["", "💡 SUGESTÕES"])
        if not advice.suggestions:
            lines.append(f"  {advice.empty_suggestions_message}")
        for suggestion in advice.suggestions:
            lines.append(f"  [{suggestion.pill}] {suggestion.text}")

        lines.extend(["", "🎲 CURIOSIDADES"])
        if not advice.fun_facts:
            lines.append(f"  {advice.empty_fun_message}")
        for fact in advice.fun_facts:
            lines.append(f"  [{fact.pill}] {fact.text}")

        lines.extend(["", "=" * 50])
        return "\n".join(lines)
