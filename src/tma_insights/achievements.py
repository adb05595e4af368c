"""
Achievement engine for TMA Insights.

PURPOSE: Evaluate the daily achievement catalog against one dataset snapshot.
AI CONTEXT: Pure data processing. Rules are data (an ordered tuple), not an if-chain.

STRUCTURE:
1. DerivedFacts: every quantity the rules need, computed once per snapshot
2. AchievementRule: key + icon + title + evaluate(facts) -> RuleOutcome
3. ACHIEVEMENT_RULES: the ordered catalog (order matters for display only)
4. evaluate_awards(): snapshot -> AwardsResult(unlocked, locked)
5. select_awards_for_display(): caps and the "show locked" toggle

SEQUENCE ANALYSES:
- near streak: newest backwards while |difference| <= 60s
- margin episodes: oldest -> newest running balance leaving the ±10 min band
- comeback: mean |difference| of the first 10 vs the last 10
- fire recovery: first |difference| >= 10 min, then 3 in a row <= 2 min

Locked awards always say where the day currently stands ("16/17",
"saldo atual: +12m00s") so the hint is actionable.

USAGE:
    result = evaluate_awards(snapshot)
    display = select_awards_for_display(result, show_locked=True)
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import Config
from .models import Award, DatasetSnapshot, LunchWindow, TransactionRecord
from .timeutils import (
    clock_from_seconds,
    format_signed_compact,
    round_half_up,
    seconds_of_day,
    seconds_to_short,
    to_finite,
)

__all__ = [
    "MarginEpisodes",
    "OutlierRecovery",
    "DerivedFacts",
    "RuleOutcome",
    "AchievementRule",
    "ACHIEVEMENT_RULES",
    "AwardsResult",
    "AwardsDisplay",
    "p90_abs",
    "near_streak",
    "margin_episodes",
    "outlier_recovery",
    "order_oldest_first",
    "evaluate_awards",
    "select_awards_for_display",
]

EMPTY_AWARDS_MESSAGE = "Sem awards ainda — precisa de histórico."


# =============================================================================
# SEQUENCE HELPERS
# =============================================================================


def p90_abs(abs_diffs: Sequence[float]) -> float:
    """
    90th percentile of absolute differences (nearest-rank, no interpolation).

    Picks index floor(0.9 * n) of the ascending values, clamped to the last
    index.

    Example:
        >>> p90_abs([10, 20, 30, 40, 50, 60, 70, 80, 90, 100])
        100
    """
    if not abs_diffs:
        return 0
    ordered = sorted(abs_diffs)
    return ordered[min(len(ordered) - 1, math.floor(len(ordered) * 0.9))]


def near_streak(differences_newest_first: Sequence[float | None]) -> int:
    """
    Count the most recent transactions within ±60s of target.

    Walks from the newest backwards and stops at the first transaction that
    is farther away or has no usable difference.

    Example:
        >>> near_streak([10, 20, 70, 5])
        2
    """
    streak = 0
    for diff in differences_newest_first:
        if diff is None or not math.isfinite(diff):
            break
        if abs(diff) > Config.NEAR_SECONDS:
            break
        streak += 1
    return streak


@dataclass(frozen=True)
class MarginEpisodes:
    """Result of walking the running balance from oldest to newest."""

    count: int = 0
    ever_out: bool = False
    running_balances: tuple[float, ...] = ()


def margin_episodes(
    differences_oldest_first: Sequence[float | None],
    margin: float = Config.BALANCE_MARGIN_SECONDS,
) -> MarginEpisodes:
    """
    Count episodes of the running balance outside ±margin.

    An episode starts every time |running balance| goes from <= margin to
    > margin. Missing differences are skipped.

    Example:
        >>> margin_episodes([700, -50, 50])
        MarginEpisodes(count=1, ever_out=True, running_balances=(700, 650, 700))
    """
    running = 0
    count = 0
    ever_out = False
    was_out = False
    balances = []
    for diff in differences_oldest_first:
        if diff is None or not math.isfinite(diff):
            continue
        running += diff
        balances.append(running)
        is_out = abs(running) > margin
        if is_out and not was_out:
            count += 1
        if is_out:
            ever_out = True
        was_out = is_out
    return MarginEpisodes(count=count, ever_out=ever_out, running_balances=tuple(balances))


@dataclass(frozen=True)
class OutlierRecovery:
    """First big outlier and whether the day got back on track after it."""

    outlier_index: int = -1
    fixed: bool = False
    best_fix_streak: int = 0

    @property
    def has_outlier(self) -> bool:
        return self.outlier_index >= 0


def outlier_recovery(differences_oldest_first: Sequence[float | None]) -> OutlierRecovery:
    """
    Find the first |difference| >= 10 min and look for 3 in a row <= 2 min after it.

    Missing differences are skipped without breaking the run; any
    transaction over 2 min resets it.
    """
    outlier_at = -1
    for index, diff in enumerate(differences_oldest_first):
        if diff is None or not math.isfinite(diff):
            continue
        if abs(diff) >= Config.BIG_OUTLIER_SECONDS:
            outlier_at = index
            break
    if outlier_at < 0:
        return OutlierRecovery()

    run = 0
    best = 0
    for diff in differences_oldest_first[outlier_at + 1 :]:
        if diff is None or not math.isfinite(diff):
            continue
        if abs(diff) <= Config.FIX_MARGIN_SECONDS:
            run += 1
            best = max(best, run)
            if run >= Config.FIX_STREAK_REQUIRED:
                return OutlierRecovery(outlier_at, True, best)
        else:
            run = 0
    return OutlierRecovery(outlier_at, False, best)


def order_oldest_first(transactions: Sequence[TransactionRecord]) -> list[TransactionRecord]:
    """
    Order newest-first transactions chronologically.

    When at least one timestamp parses, sort by time (stable; unparseable
    timestamps sort as the epoch). Otherwise just reverse the list.
    """
    times = [tx.parsed_time().epoch_seconds() for tx in transactions]
    if not any(t is not None for t in times):
        return list(reversed(transactions))
    keyed = sorted(zip(times, range(len(times)), strict=True), key=lambda pair: pair[0] or 0)
    return [transactions[index] for _, index in keyed]


def _mean_abs(transactions: Sequence[TransactionRecord]) -> float:
    return sum(abs(tx.diff_or_zero) for tx in transactions) / max(1, len(transactions))


# =============================================================================
# DERIVED FACTS
# =============================================================================


@dataclass(frozen=True)
class DerivedFacts:
    """
    Every quantity the achievement rules read, computed once per snapshot.

    diffs holds only finite differences, newest first. saldo is the
    snapshot balance when finite, otherwise the sum of differences.
    """

    transaction_count: int = 0
    diffs: tuple[float, ...] = ()
    abs_diffs: tuple[float, ...] = ()
    sum_diff: float = 0.0
    avg_diff: float = 0.0
    avg_abs_diff: float = 0.0
    max_abs_diff: float = 0.0
    p90_abs: float = 0.0
    count_near_20: int = 0
    count_near_30: int = 0
    count_near_60: int = 0
    pct_near_20: int = 0
    pct_near_60: int = 0
    saldo: float = 0.0
    near_streak: int = 0
    episodes: MarginEpisodes = field(default_factory=MarginEpisodes)
    first_window_size: int = 0
    last_window_size: int = 0
    first_window_avg_abs: float = 0.0
    last_window_avg_abs: float = 0.0
    recovery: OutlierRecovery = field(default_factory=OutlierRecovery)
    return_count: int = 0
    return_pct: int = 0
    complex_count: int = 0
    has_exact_tma: bool = False
    closest: TransactionRecord | None = None
    farthest: TransactionRecord | None = None
    earliest: datetime | None = None
    latest: datetime | None = None
    lunch: LunchWindow | None = None
    any_tx_during_lunch: bool = False

    @property
    def diffs_oldest_first(self) -> tuple[float, ...]:
        return tuple(reversed(self.diffs))

    @property
    def sample_size(self) -> int:
        return len(self.diffs)

    @property
    def abs_saldo(self) -> float:
        return abs(self.saldo)

    @property
    def ended_within_margin(self) -> bool:
        return self.abs_saldo <= Config.BALANCE_MARGIN_SECONDS

    @property
    def ever_out_of_margin(self) -> bool:
        return self.episodes.ever_out

    @property
    def comeback_gain(self) -> float:
        """Improvement in mean |difference| from the first to the last window."""
        if self.first_window_avg_abs > 0 and self.last_window_avg_abs > 0:
            return self.first_window_avg_abs - self.last_window_avg_abs
        return 0.0

    @property
    def has_lunch_window(self) -> bool:
        return self.lunch is not None and self.lunch.is_configured

    @classmethod
    def from_snapshot(cls, snapshot: DatasetSnapshot) -> DerivedFacts:
        """
        Derive every rule input from a snapshot.

        Args:
            snapshot: Day of data; transactions newest first.

        Returns:
            DerivedFacts. Never raises; an empty snapshot yields zeros.
        """
        tx = list(snapshot.transactions)
        diffs = tuple(t.difference for t in tx if t.difference is not None)
        abs_diffs = tuple(abs(d) for d in diffs)
        n = len(diffs)
        sum_diff = sum(diffs)

        near20 = sum(1 for d in abs_diffs if d <= Config.PRECISE_SECONDS)
        near30 = sum(1 for d in abs_diffs if d <= 30)
        near60 = sum(1 for d in abs_diffs if d <= Config.NEAR_SECONDS)

        balance = to_finite(snapshot.balance_seconds)
        saldo = balance if balance is not None else sum_diff

        oldest_first = order_oldest_first(tx)
        oldest_diffs = [t.difference for t in oldest_first]
        first_window = oldest_first[: Config.COMEBACK_WINDOW]
        last_window = oldest_first[-Config.COMEBACK_WINDOW :] if oldest_first else []

        closest: TransactionRecord | None = None
        farthest: TransactionRecord | None = None
        for t in tx:
            if t.difference is None:
                continue
            distance = abs(t.difference)
            if closest is None or distance < abs(closest.diff_or_zero):
                closest = t
            if farthest is None or distance > abs(farthest.diff_or_zero):
                farthest = t

        timed = [
            (parsed.epoch_seconds(), parsed.local())
            for parsed in (t.parsed_time() for t in tx)
            if parsed.is_valid
        ]
        earliest = min(timed, key=lambda pair: pair[0])[1] if timed else None
        latest = max(timed, key=lambda pair: pair[0])[1] if timed else None

        lunch = snapshot.lunch
        during_lunch = bool(
            lunch is not None
            and lunch.is_configured
            and any(moment is not None and lunch.contains(seconds_of_day(moment)) for _, moment in timed)
        )

        return_count = sum(1 for t in tx if t.is_return)

        return cls(
            transaction_count=len(tx),
            diffs=diffs,
            abs_diffs=abs_diffs,
            sum_diff=sum_diff,
            avg_diff=sum_diff / max(1, n),
            avg_abs_diff=sum(abs_diffs) / max(1, n),
            max_abs_diff=max(abs_diffs) if abs_diffs else 0,
            p90_abs=p90_abs(abs_diffs),
            count_near_20=near20,
            count_near_30=near30,
            count_near_60=near60,
            pct_near_20=round_half_up(near20 / max(1, n) * 100),
            pct_near_60=round_half_up(near60 / max(1, n) * 100),
            saldo=saldo,
            near_streak=near_streak([t.difference for t in tx]),
            episodes=margin_episodes(oldest_diffs),
            first_window_size=len(first_window),
            last_window_size=len(last_window),
            first_window_avg_abs=_mean_abs(first_window),
            last_window_avg_abs=_mean_abs(last_window),
            recovery=outlier_recovery(oldest_diffs),
            return_count=return_count,
            return_pct=round_half_up(return_count / max(1, len(tx)) * 100),
            complex_count=sum(1 for t in tx if t.is_complex),
            has_exact_tma=any(d == 0 for d in diffs),
            closest=closest,
            farthest=farthest,
            earliest=earliest,
            latest=latest,
            lunch=lunch,
            any_tx_during_lunch=during_lunch,
        )


# =============================================================================
# RULE CATALOG
# =============================================================================


@dataclass(frozen=True)
class RuleOutcome:
    """What one rule decided; title overrides the catalog title when set."""

    unlocked: bool
    description: str
    details: str
    title: str | None = None


RuleFn = Callable[[DerivedFacts], RuleOutcome | None]


@dataclass(frozen=True)
class AchievementRule:
    """
    One independent achievement: a predicate plus its renderer.

    evaluate returns None when the rule does not apply to the day at all
    (the award is then left out of both lists).
    """

    key: str
    icon: str
    title: str
    evaluate: RuleFn

    def award(self, facts: DerivedFacts) -> Award | None:
        outcome = self.evaluate(facts)
        if outcome is None:
            return None
        return Award(
            key=self.key,
            icon=self.icon,
            title=outcome.title or self.title,
            short_description=outcome.description,
            detailed_explanation=outcome.details,
            locked=not outcome.unlocked,
        )

    def empty_award(self) -> Award:
        """Locked card for a day with no transactions yet."""
        return Award(
            key=self.key,
            icon=self.icon,
            title=self.title,
            short_description=_lock_hint("registre contas no dia", "0 contas hoje"),
            detailed_explanation=EMPTY_AWARDS_MESSAGE,
            locked=True,
        )


def _lock_hint(how: str, progress: str) -> str:
    return f"Bloqueado — {how} ({progress})"


def _unlocked(description: str, details: str, title: str | None = None) -> RuleOutcome:
    return RuleOutcome(True, description, details, title)


def _locked(how: str, progress: str, details: str, title: str | None = None) -> RuleOutcome:
    return RuleOutcome(False, _lock_hint(how, progress), details, title)


def _saldo_text(f: DerivedFacts) -> str:
    return f"saldo atual: {format_signed_compact(f.saldo)}"


def _goal_progress(f: DerivedFacts) -> str:
    return f"{f.transaction_count}/{Config.DAILY_GOAL}"


def _rule_daily_goal(f: DerivedFacts) -> RuleOutcome:
    if f.transaction_count >= Config.DAILY_GOAL:
        return _unlocked(
            f"Você fez {f.transaction_count} contas hoje (meta: {Config.DAILY_GOAL}).",
            "Condição: registrar 17+ contas no dia.\n\n"
            "Por que isso existe:\n- A meta é volume diário (não minutos).",
        )
    return _locked(
        "registre 17 contas no dia",
        _goal_progress(f),
        "Como desbloquear:\n- Registre 17 contas no dia.\n\n"
        f"Dica:\n- Você está em {_goal_progress(f)} hoje.",
    )


def _rule_exact_tma(f: DerivedFacts) -> RuleOutcome:
    if f.has_exact_tma:
        return _unlocked(
            "Você fez pelo menos 1 conta exatamente no TMA.",
            "Condição:\n- Ter pelo menos 1 conta com (Gasto - TMA) = 0.",
        )
    closest = format_signed_compact(f.closest.diff_or_zero) if f.closest else "—"
    return _locked(
        "faça 1 conta com (Gasto - TMA) = 0",
        f"mais perto hoje: {closest}",
        "Como desbloquear:\n- Ter pelo menos 1 conta com (Gasto - TMA) = 0.\n\n"
        f"Mais perto hoje: {closest}.",
    )


def _rule_within_margin(f: DerivedFacts) -> RuleOutcome:
    if f.ended_within_margin:
        return _unlocked(
            f"Você fechou o dia dentro de ±10 min ({format_signed_compact(f.saldo)}).",
            "Condição:\n- Fechar o dia com |saldo| ≤ 10 min.",
        )
    return _locked(
        "feche o dia dentro de ±10 min",
        _saldo_text(f),
        "Como desbloquear:\n- Fechar o dia com |saldo| ≤ 10 min.\n\n"
        f"Saldo atual: {format_signed_compact(f.saldo)}.",
    )


def _rule_honor(f: DerivedFacts) -> RuleOutcome:
    if f.transaction_count >= Config.DAILY_GOAL and f.ended_within_margin:
        return _unlocked(
            "Bateu a meta e fechou o dia dentro da margem.",
            "Condição:\n- 17+ contas\n- E fechar o dia com |saldo| ≤ 10 min.",
        )
    return _locked(
        "faça 17 contas e feche dentro de ±10 min",
        f"{_goal_progress(f)}, {_saldo_text(f)}",
        "Como desbloquear:\n- 17+ contas\n- E fechar o dia com |saldo| ≤ 10 min.\n\n"
        f"Hoje: {_goal_progress(f)} contas, saldo {format_signed_compact(f.saldo)}.",
    )


def _rule_quick_recovery(f: DerivedFacts) -> RuleOutcome:
    if f.ever_out_of_margin and f.ended_within_margin:
        return _unlocked(
            "Saiu da margem, mas fechou o dia dentro da meta.",
            "Condição:\n- Em algum momento, o saldo ficou fora de ±10 min\n"
            "- E fechou o dia com |saldo| ≤ 10 min.",
        )
    return _locked(
        "saia da margem e termine dentro de ±10 min",
        f"{f.episodes.count} saída(s) da margem, {_saldo_text(f)}",
        "Como desbloquear:\n- Em algum momento, o saldo precisa passar de ±10 min\n"
        "- E no final do dia, |saldo| ≤ 10 min.",
    )


def _rule_playing_with_fire(f: DerivedFacts) -> RuleOutcome:
    if f.episodes.count >= Config.EPISODES_GOAL and f.ended_within_margin:
        return _unlocked(
            f"Você saiu da margem de ±10 min {f.episodes.count} vezes e terminou dentro.",
            "Condição:\n- Sair da margem de ±10 min 5+ vezes (episódios)\n"
            "- E fechar o dia com |saldo| ≤ 10 min.",
        )
    return _locked(
        "saia da margem 5 vezes e feche dentro de ±10 min",
        f"{f.episodes.count}/{Config.EPISODES_GOAL} saídas, {_saldo_text(f)}",
        "Como desbloquear:\n- Sair da margem de ±10 min 5+ vezes\n"
        "- E fechar o dia com |saldo| ≤ 10 min.",
    )


def _rule_perfectionist(f: DerivedFacts) -> RuleOutcome:
    if not f.ever_out_of_margin:
        return _unlocked(
            "Você não deixou o saldo passar da margem de ±10 min nenhuma vez.",
            "Condição:\n- Em nenhum momento o saldo acumulado passou de ±10 min.\n\n"
            "Como eu verifico:\n- Eu somo (Gasto - TMA) conta por conta "
            "(do mais antigo ao mais novo) e observo o saldo acumulado.",
        )
    return _locked(
        "não deixe o saldo acumulado passar de ±10 min",
        f"{f.episodes.count} saída(s) da margem hoje",
        "Como desbloquear:\n- Não deixe o saldo acumulado passar de ±10 min em nenhum momento.\n\n"
        "Dica:\n- Se você estourou a margem cedo, a chance de estourar de novo aumenta.",
    )


def _rule_complex(f: DerivedFacts) -> RuleOutcome:
    if f.complex_count >= Config.COMPLEX_GOAL:
        return _unlocked(
            f"Você fez {f.complex_count} contas Complexas.",
            'Condição:\n- Fazer 10+ contas com item = "Complexa".',
        )
    return _locked(
        "faça 10 contas Complexas",
        f"{f.complex_count}/{Config.COMPLEX_GOAL}",
        'Como desbloquear:\n- Fazer 10+ contas com item = "Complexa".',
    )


def _rule_goal_without_returns(f: DerivedFacts) -> RuleOutcome:
    if f.transaction_count >= Config.DAILY_GOAL and f.return_count == 0:
        return _unlocked(
            "Bateu a meta sem nenhum retorno.",
            'Condição:\n- 17+ contas\n- E 0 contas do tipo "retorno".',
        )
    return _locked(
        "bata a meta sem retornos",
        f"{_goal_progress(f)} contas, {f.return_count} retorno(s)",
        'Como desbloquear:\n- 17+ contas\n- E 0 contas do tipo "retorno".',
    )


def _rule_zero_returns(f: DerivedFacts) -> RuleOutcome:
    if f.return_count == 0:
        return _unlocked(
            "Você não fez nenhum retorno hoje.",
            'Condição:\n- Ter 0 contas do tipo "retorno".',
        )
    return _locked(
        "não faça nenhum retorno",
        f"{f.return_count} retorno(s) em {f.transaction_count} conta(s)",
        'Como desbloquear:\n- Ter 0 contas do tipo "retorno".\n\n'
        f"Hoje: {f.return_count} retorno(s) em {f.transaction_count} conta(s).",
    )


def _rule_high_returns(f: DerivedFacts) -> RuleOutcome:
    if f.transaction_count >= Config.MIN_SAMPLE_SIZE and f.return_pct >= Config.RETURN_RATIO_PCT:
        return _unlocked(
            f"{f.return_pct}% das contas foram retorno.",
            'Condição:\n- 10+ contas\n- E 70%+ do tipo "retorno".',
        )
    return _locked(
        "tenha 70%+ das contas como retorno (com 10+)",
        f"{f.return_pct}% em {f.transaction_count} conta(s)",
        'Como desbloquear:\n- Fazer 10+ contas\n- E 70%+ do tipo "retorno".',
    )


def _rule_marathon(f: DerivedFacts) -> RuleOutcome:
    if f.transaction_count >= Config.MARATHON_COUNT:
        return _unlocked(
            f"{f.transaction_count} contas registradas.",
            "Condição: 20+ contas no dia.\n\nIsso mede volume, não qualidade.",
        )
    return _locked(
        "registre 20+ contas no dia",
        f"{f.transaction_count}/{Config.MARATHON_COUNT}",
        "Como desbloquear:\n- Registre 20+ contas no dia.",
    )


def _rule_balance_near_zero(f: DerivedFacts) -> RuleOutcome:
    compact = format_signed_compact(f.saldo)
    if f.abs_saldo <= Config.BALANCE_ZERO_SECONDS:
        return _unlocked(
            f"Seu saldo ficou bem perto de 00:00:00 ({compact}).",
            "Condição: saldo do dia com |saldo| ≤ 1 min.\n\n"
            "Interpretação:\n- Você terminou o dia bem equilibrado.",
            title="Saldo zerado",
        )
    if f.abs_saldo <= Config.BALANCE_CONTROLLED_SECONDS:
        return _unlocked(
            f"Seu saldo ficou perto de 00:00:00 ({compact}).",
            "Condição: saldo do dia com |saldo| ≤ 5 min.\n\n"
            "Dica:\n- Para zerar, foque em reduzir a oscilação do (Gasto - TMA).",
        )
    return _locked(
        "deixe o saldo perto de 00:00:00 (≤ 5 min)",
        _saldo_text(f),
        f"Como desbloquear:\n- Termine o dia com |saldo| ≤ 5 min.\n\nSaldo atual: {compact}.",
    )


def _rule_consistency(f: DerivedFacts) -> RuleOutcome:
    if f.sample_size >= Config.MIN_SAMPLE_SIZE and f.pct_near_60 >= Config.CONSISTENCY_PCT:
        return _unlocked(
            f"{f.pct_near_60}% das contas ficaram a até 1 min do TMA.",
            "Condição: 10+ contas e 60%+ com |Gasto - TMA| ≤ 1 min.\n\n"
            "Isso indica consistência (saldo tende a ficar perto de 00).",
        )
    return _locked(
        "60%+ das contas a até 1 min do TMA (com 10+ contas)",
        f"{f.pct_near_60}% em {f.sample_size} conta(s)",
        "Como desbloquear:\n- Faça 10+ contas\n- E deixe 60%+ delas com |Gasto - TMA| ≤ 1 min.",
    )


def _rule_precision(f: DerivedFacts) -> RuleOutcome:
    if f.sample_size >= Config.MIN_SAMPLE_SIZE and f.pct_near_20 >= Config.PRECISION_PCT:
        return _unlocked(
            f"{f.pct_near_20}% das contas ficaram a até 20s do TMA.",
            "Condição: 10+ contas e 40%+ com |Gasto - TMA| ≤ 20s.\n\n"
            "É um desafio de precisão (sem correr).",
        )
    return _locked(
        "40%+ das contas a até 20s do TMA (com 10+ contas)",
        f"{f.pct_near_20}% em {f.sample_size} conta(s)",
        "Como desbloquear:\n- Faça 10+ contas\n- E deixe 40%+ delas com |Gasto - TMA| ≤ 20s.",
    )


def _rule_no_scares(f: DerivedFacts) -> RuleOutcome:
    if f.sample_size >= Config.MIN_SAMPLE_SIZE and f.max_abs_diff <= Config.NO_SCARES_MAX_SECONDS:
        return _unlocked(
            "Nenhuma conta saiu muito do TMA (≤ 5 min).",
            "Condição: 10+ contas e máximo |Gasto - TMA| ≤ 5 min.\n\n"
            "Isso ajuda o saldo a ficar perto de 00.",
        )
    return _locked(
        "máximo |Gasto - TMA| ≤ 5 min (com 10+ contas)",
        f"maior desvio {seconds_to_short(f.max_abs_diff)} em {f.sample_size} conta(s)",
        "Como desbloquear:\n- Faça 10+ contas\n"
        "- E não deixe nenhuma passar de 5 min de diferença (pra mais ou pra menos).",
    )


def _rule_stable_day(f: DerivedFacts) -> RuleOutcome:
    if f.sample_size >= Config.MIN_SAMPLE_SIZE and f.p90_abs <= Config.STABLE_P90_SECONDS:
        return _unlocked(
            "Quase tudo ficou perto do TMA (p90 ≤ 2 min).",
            "Condição: 10+ contas e p90 de |Gasto - TMA| ≤ 2 min.\n\n"
            "Interpretação:\n- 90% das contas não fogem muito do padrão.",
        )
    return _locked(
        "p90 de |Gasto - TMA| ≤ 2 min (com 10+ contas)",
        f"p90 {seconds_to_short(f.p90_abs)} em {f.sample_size} conta(s)",
        "Como desbloquear:\n- Faça 10+ contas\n- E deixe 90% delas com |Gasto - TMA| ≤ 2 min.",
    )


def _rule_streak(f: DerivedFacts) -> RuleOutcome:
    if f.near_streak >= Config.STREAK_GOAL:
        return _unlocked(
            f"Sequência atual: {f.near_streak} contas bem perto do TMA.",
            "Condição: 5+ contas seguidas (as mais recentes) com |Gasto - TMA| ≤ 1 min.",
        )
    return _locked(
        "faça 5 contas seguidas a até 1 min do TMA",
        f"sequência atual: {f.near_streak}/{Config.STREAK_GOAL}",
        "Como desbloquear:\n- Faça 5 contas seguidas com |Gasto - TMA| ≤ 1 min.",
    )


def _rule_comeback(f: DerivedFacts) -> RuleOutcome:
    windows_ok = (
        f.first_window_size >= Config.COMEBACK_MIN_WINDOW
        and f.last_window_size >= Config.COMEBACK_MIN_WINDOW
    )
    if windows_ok and f.comeback_gain >= Config.COMEBACK_GAIN_SECONDS:
        return _unlocked(
            f"Você ficou mais preciso no final do dia (~{seconds_to_short(f.comeback_gain)} melhor).",
            "Como eu calculo:\n- Comparo a média de |Gasto - TMA| das primeiras contas vs das últimas\n\n"
            "Se melhora, o final do dia está mais “no trilho”.",
        )
    progress = (
        f"começo {seconds_to_short(f.first_window_avg_abs)} vs fim "
        f"{seconds_to_short(f.last_window_avg_abs)} de desvio médio"
        if windows_ok
        else f"{f.transaction_count} conta(s), precisa de {Config.COMEBACK_MIN_WINDOW}+"
    )
    return _locked(
        "melhore a precisão do começo para o fim",
        progress,
        "Como desbloquear:\n- Faça o final do dia ficar mais perto do TMA do que o começo.\n\n"
        "Dica:\n- Um ajuste de processo no meio do dia já muda isso.",
    )


def _rule_best_transaction(f: DerivedFacts) -> RuleOutcome | None:
    if f.closest is None:
        return None
    diff = f.closest.diff_or_zero
    if abs(diff) <= Config.PRECISE_SECONDS:
        return _unlocked(
            f"Você fez uma conta quase perfeita ({format_signed_compact(diff)}).",
            f"O que é:\n- A conta com menor |Gasto - TMA| do dia\n\nConta:\n- {f.closest.label}",
        )
    return _locked(
        "faça 1 conta a até 20s do TMA",
        f"mais perto hoje: {format_signed_compact(diff)}",
        "Como desbloquear:\n- Tenha pelo menos 1 conta com |Gasto - TMA| ≤ 20s.",
    )


def _rule_fire_recovery(f: DerivedFacts) -> RuleOutcome:
    if f.recovery.has_outlier and f.recovery.fixed:
        return _unlocked(
            "O dia saiu da margem de 10 min e você trouxe de volta pro trilho.",
            "Condição:\n- Em algum momento, |Gasto - TMA| ≥ 10 min\n"
            '- Depois, 3 contas seguidas ficaram "perto do TMA" (|Gasto - TMA| ≤ 2 min)\n\n'
            "Isso é recuperação: o importante é voltar ao padrão.",
        )
    if f.recovery.has_outlier:
        progress = (
            f"sequência após o desvio: {f.recovery.best_fix_streak}/{Config.FIX_STREAK_REQUIRED}"
        )
    else:
        progress = f"maior desvio {seconds_to_short(f.max_abs_diff)}, precisa de 10 min"
    return _locked(
        "saia da margem de 10 min e depois conserte",
        progress,
        "Como desbloquear:\n- Ter pelo menos 1 conta com |Gasto - TMA| ≥ 10 min\n"
        "- E depois fazer 3 contas seguidas com |Gasto - TMA| ≤ 2 min\n\n"
        "Dica:\n- Use uma micro-pausa e volta com o setup padronizado.",
    )


def _clock(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def _rule_early_bird(f: DerivedFacts) -> RuleOutcome:
    earliest = f.earliest
    if earliest is not None and earliest.hour * 60 + earliest.minute < Config.EARLY_BIRD_MINUTES:
        return _unlocked(
            f"Primeira conta registrada cedo ({_clock(earliest)}).",
            "Condição: ter uma conta registrada antes de 08:10.",
        )
    progress = f"primeira conta às {_clock(earliest)}" if earliest else "nenhuma conta com horário"
    return _locked(
        "registre uma conta antes de 08:10",
        progress,
        "Como desbloquear:\n- Registre ao menos 1 conta antes de 08:10.",
    )


def _rule_lunch_dedication(f: DerivedFacts) -> RuleOutcome:
    if not f.has_lunch_window or f.lunch is None:
        return _locked(
            "configure seu horário de almoço",
            "almoço não configurado",
            "Como desbloquear:\n- Configure o intervalo de almoço no app\n"
            "- E registre pelo menos 1 conta dentro desse intervalo.",
        )
    if f.any_tx_during_lunch:
        return _unlocked(
            "Você registrou uma conta durante o almoço.",
            "Condição:\n- Ter um intervalo de almoço configurado\n"
            "- E registrar pelo menos 1 conta dentro do intervalo.",
        )
    window = f"{clock_from_seconds(f.lunch.start)} → {clock_from_seconds(f.lunch.end)}"
    return _locked(
        "registre 1 conta durante o almoço",
        f"0 contas entre {window}",
        "Como desbloquear:\n- Registre pelo menos 1 conta dentro do seu intervalo de almoço configurado.",
    )


def _rule_night_owl(f: DerivedFacts) -> RuleOutcome:
    latest = f.latest
    if latest is not None and latest.hour >= Config.NIGHT_OWL_HOUR:
        return _unlocked(
            f"Conta registrada tarde (≈ {latest.hour:02d}:xx).",
            "Condição: ter uma conta registrada às 20:xx ou depois.",
        )
    progress = f"última conta às {_clock(latest)}" if latest else "nenhuma conta com horário"
    return _locked(
        "registre uma conta às 20:xx ou depois",
        progress,
        "Como desbloquear:\n- Registre ao menos 1 conta a partir de 20:00.",
    )


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("daily_goal", "🎯", "Bateu a meta", _rule_daily_goal),
    AchievementRule("exact_tma", "🧷", "Na risca", _rule_exact_tma),
    AchievementRule("within_margin", "🏦", "Dentro da margem", _rule_within_margin),
    AchievementRule("honor", "🏅", "Conquista de honra", _rule_honor),
    AchievementRule("quick_recovery", "⚡", "Recuperação rápida", _rule_quick_recovery),
    AchievementRule("playing_with_fire", "🔥", "Brincando com fogo", _rule_playing_with_fire),
    AchievementRule("perfectionist", "🧼", "Perfeccionista", _rule_perfectionist),
    AchievementRule("complex_10", "🧱", "10 complexas", _rule_complex),
    AchievementRule("goal_no_returns", "🚫", "Retorno? Pra que?", _rule_goal_without_returns),
    AchievementRule("zero_returns", "🙅", "Retorno? Hoje não", _rule_zero_returns),
    AchievementRule("high_returns", "🔄", "Retorno? Hoje sim", _rule_high_returns),
    AchievementRule("marathon", "⛏️", "Maratona", _rule_marathon),
    AchievementRule("balance_near_zero", "⚖️", "Saldo controlado", _rule_balance_near_zero),
    AchievementRule("consistency", "🧊", "Perto do TMA", _rule_consistency),
    AchievementRule("precision", "🎯", "Precisão", _rule_precision),
    AchievementRule("no_scares", "🛡️", "Sem sustos", _rule_no_scares),
    AchievementRule("stable_day", "🧱", "Dia estável", _rule_stable_day),
    AchievementRule("streak", "🔥", "Sequência no trilho", _rule_streak),
    AchievementRule("comeback", "📉", "Virada", _rule_comeback),
    AchievementRule("best_transaction", "🧠", "Conta no ponto", _rule_best_transaction),
    AchievementRule("fire_recovery", "🧯", "Apagou incêndio", _rule_fire_recovery),
    AchievementRule("early_bird", "🌅", "Early bird", _rule_early_bird),
    AchievementRule("lunch_dedication", "🥪", "Dedicação total", _rule_lunch_dedication),
    AchievementRule("night_owl", "🌙", "Night owl", _rule_night_owl),
)


# =============================================================================
# EVALUATION
# =============================================================================


@dataclass(frozen=True)
class AwardsResult:
    """Full evaluation: every award, split by state, in catalog order."""

    unlocked: list[Award] = field(default_factory=list)
    locked: list[Award] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.unlocked) + len(self.locked)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unlocked": [a.to_dict() for a in self.unlocked],
            "locked": [a.to_dict() for a in self.locked],
        }


@dataclass(frozen=True)
class AwardsDisplay:
    """What the awards panel shows for a given "show locked" toggle state."""

    unlocked: list[Award]
    locked: list[Award]
    unlocked_count: int
    total_count: int
    show_locked: bool

    @property
    def headline(self) -> str:
        state = "Bloqueados visíveis." if self.show_locked else "Bloqueados escondidos."
        return f"{self.unlocked_count} desbloqueados de {self.total_count}. {state}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "unlocked": [a.to_dict() for a in self.unlocked],
            "locked": [a.to_dict() for a in self.locked],
            "unlockedCount": self.unlocked_count,
            "totalCount": self.total_count,
            "showLocked": self.show_locked,
            "headline": self.headline,
        }


def evaluate_awards(
    snapshot: DatasetSnapshot,
    rules: Sequence[AchievementRule] = ACHIEVEMENT_RULES,
) -> AwardsResult:
    """
    Evaluate every rule against one snapshot.

    Rules never see each other's outcome. The result does not depend on any
    UI state; the "show locked" toggle is applied later by
    select_awards_for_display().

    Business context: The award feed is the gamified summary of the day.
    Recomputing it from the snapshot on every call means streaks and
    counters never drift from the underlying data.

    Args:
        snapshot: Day of data to evaluate.
        rules: Catalog to evaluate; defaults to ACHIEVEMENT_RULES.

    Returns:
        AwardsResult with unlocked and locked awards in catalog order.
        A snapshot without transactions yields every award locked.

    Example:
        >>> result = evaluate_awards(DatasetSnapshot())
        >>> len(result.unlocked)
        0
    """
    if not snapshot.transactions:
        return AwardsResult(unlocked=[], locked=[rule.empty_award() for rule in rules])

    facts = DerivedFacts.from_snapshot(snapshot)
    unlocked: list[Award] = []
    locked: list[Award] = []
    for rule in rules:
        award = rule.award(facts)
        if award is None:
            continue
        (locked if award.locked else unlocked).append(award)
    return AwardsResult(unlocked=unlocked, locked=locked)


def select_awards_for_display(
    result: AwardsResult,
    show_locked: bool = False,
    limit: int = Config.MAX_AWARDS_SHOWN,
) -> AwardsDisplay:
    """
    Shape awards for the panel.

    Args:
        result: Output of evaluate_awards().
        show_locked: UI toggle; locked awards are only listed when True.
        limit: Cap for each list.

    Returns:
        AwardsDisplay with at most `limit` unlocked and `limit` locked awards.
    """
    return AwardsDisplay(
        unlocked=result.unlocked[:limit],
        locked=result.locked[:limit] if show_locked else [],
        unlocked_count=len(result.unlocked),
        total_count=result.total_count,
        show_locked=show_locked,
    )
