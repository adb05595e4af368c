"""Tests for advice module."""

from __future__ import annotations

import math

from conftest import make_tx

from tma_insights.advice import (
    EMPTY_FUN_MESSAGE,
    EMPTY_SUGGESTIONS_MESSAGE,
    AdviceResult,
    build_advice,
)
from tma_insights.models import DatasetSnapshot


def _pills(result: AdviceResult) -> list[str]:
    return [s.pill for s in result.suggestions]


def _fact(result: AdviceResult, pill: str) -> str:
    for fact in result.fun_facts:
        if fact.pill == pill:
            return fact.text
    raise AssertionError(f"no fun fact {pill!r}")


class TestBuildAdviceEmpty:
    """Tests for a day without transactions."""

    def test_empty_day_has_placeholders(self) -> None:
        """Verifies an empty day yields no cards and both placeholder texts.

        Business context:
        First thing in the morning the panel is empty. It should say why
        instead of showing a blank box.

        Arrangement:
        No transactions.

        Action:
        Build advice.

        Assertion Strategy:
        Validates empty lists, is_empty, and both placeholder messages.
        """
        result = build_advice([])

        assert result.suggestions == []
        assert result.fun_facts == []
        assert result.is_empty
        assert result.empty_suggestions_message == EMPTY_SUGGESTIONS_MESSAGE
        assert result.empty_fun_message == EMPTY_FUN_MESSAGE


class TestSuggestions:
    """Tests for the coaching suggestions."""

    def test_sample_day_order(self, sample_snapshot: DatasetSnapshot) -> None:
        result = build_advice(sample_snapshot.transactions, sample_snapshot.balance_seconds)

        # streak of 2 gives no streak card
        assert _pills(result) == ["No alvo", "Margem", "Meta", "Olho vivo"]
        assert result.suggestions[0].text == "Últimas 5: média +12s (bem perto do TMA)."
        assert result.suggestions[0].tone == "good"

    def test_recent_average_tiers(self) -> None:
        ok = build_advice([make_tx(30)] * 3)
        bad = build_advice([make_tx(-100)] * 3)

        assert ok.suggestions[0].pill == "Ajuste fino"
        assert ok.suggestions[0].tone == "warn"
        assert bad.suggestions[0].pill == "Atenção"
        assert bad.suggestions[0].tone == "bad"
        assert "-1m40s" in bad.suggestions[0].text

    def test_recent_average_uses_newest_ten(self) -> None:
        """Older transactions don't pull the "last 10" card off target."""
        records = [make_tx(0)] * 10 + [make_tx(1000)] * 5

        result = build_advice(records)

        assert result.suggestions[0].pill == "No alvo"
        assert "Últimas 10" in result.suggestions[0].text

    def test_margin_outside(self) -> None:
        result = build_advice([make_tx(0)], balance_seconds=601)
        margin = result.suggestions[1]

        assert margin.pill == "Margem"
        assert margin.tone == "bad"
        assert "fora de ±10 min" in margin.text

    def test_margin_inside_even_when_positive(self) -> None:
        margin = build_advice([make_tx(0)], balance_seconds=600).suggestions[1]

        assert margin.tone == "good"
        assert "+10m00s" in margin.text

    def test_streak_card_at_five(self) -> None:
        result = build_advice([make_tx(10)] * 5)

        assert "Sequência" in _pills(result)
        assert "5 contas" in result.suggestions[2].text

    def test_break_card_when_newest_is_far(self) -> None:
        result = build_advice([make_tx(61), make_tx(0)])
        assert "Quebra" in _pills(result)

    def test_no_streak_card_in_between(self) -> None:
        result = build_advice([make_tx(0)] * 3)
        assert not {"Sequência", "Quebra"} & set(_pills(result))

    def test_micro_goal(self) -> None:
        """Verifies the per-transaction goal is the rounded mean deviation.

        Business context:
        "Reduce ~45s per transaction" is actionable; "your mean is +45.3s"
        is not. The card only appears when the deviation is worth acting on.

        Arrangement:
        Three transactions averaging +45s.

        Action:
        Build advice.

        Assertion Strategy:
        Validates the warn card with 45s and the 20-transaction projection.
        """
        result = build_advice([make_tx(30), make_tx(45), make_tx(60)])
        meta = next(s for s in result.suggestions if s.pill == "Meta")

        assert meta.tone == "warn"
        assert "~45s" in meta.text
        assert "~15m00s" in meta.details

    def test_micro_goal_capped_at_ten_minutes(self) -> None:
        result = build_advice([make_tx(-1800)])
        meta = next(s for s in result.suggestions if s.pill == "Meta")

        assert "~10m00s" in meta.text

    def test_micro_goal_small_deviation_is_praise(self) -> None:
        result = build_advice([make_tx(20), make_tx(-20)])
        meta = next(s for s in result.suggestions if s.pill == "Meta")

        assert meta.tone == "good"

    def test_closest_and_farthest(self) -> None:
        result = build_advice([make_tx(-40), make_tx(5), make_tx(-5), make_tx(300)])

        assert result.suggestions[-1].pill == "Olho vivo"
        assert result.suggestions[-1].text == "Mais perto do TMA: +5s. Mais longe: +5m00s."

    def test_missing_difference_counts_as_zero(self) -> None:
        result = build_advice([make_tx(None), make_tx(100)])

        assert result.diffs_newest_first == [0.0, 100]
        assert "Mais perto do TMA: 0s" in result.suggestions[-1].text

    def test_non_finite_balance_uses_sum(self) -> None:
        result = build_advice([make_tx(700)], balance_seconds=math.inf)
        assert result.suggestions[1].tone == "bad"

    def test_diff_sequences(self) -> None:
        result = build_advice([make_tx(3), make_tx(2), make_tx(1)])

        assert result.diffs_newest_first == [3, 2, 1]
        assert result.diffs_oldest_first == [1, 2, 3]


class TestFunFacts:
    """Tests for fun facts."""

    def test_sample_day(self, sample_snapshot: DatasetSnapshot) -> None:
        result = build_advice(sample_snapshot.transactions, sample_snapshot.balance_seconds)

        assert [f.pill for f in result.fun_facts] == [
            "Maratona",
            "Déjà vu",
            "Tijolinhos",
            "Sniper",
            "Chefão do dia",
        ]
        assert _fact(result, "Maratona") == "Hoje você registrou 5 contas."
        assert _fact(result, "Sniper") == "Você acertou 3 conta(s) a até 20s do TMA."
        assert _fact(result, "Chefão do dia") == "Maior desvio do TMA: 1m35s."

    def test_balance_conversions(self) -> None:
        """Verifies |balance| is converted into breaks, noodles, episodes and songs."""
        result = build_advice([make_tx(0)], balance_seconds=-1800)

        assert _fact(result, "Pausas clandestinas").startswith("Sua distância do zero dá ~2 pausas")
        assert _fact(result, "Miojo") == "Seu |saldo| dá pra cozinhar 10 miojo(s) de 3 minutos."
        assert _fact(result, "Série") == "Seu |saldo| equivale a 2 episódio(s) de 12 minutos."
        assert _fact(result, "Playlist").startswith("Ou 8 músicas")

    def test_conversions_hidden_below_one_unit(self) -> None:
        result = build_advice([make_tx(0)], balance_seconds=179)
        pills = [f.pill for f in result.fun_facts]

        assert "Miojo" not in pills
        assert "Pausas clandestinas" not in pills
        assert "Playlist" not in pills

    def test_always_has_count_fact(self) -> None:
        result = build_advice([make_tx(0)])

        assert result.fun_facts[0].pill == "Maratona"
        # all on target: no boss fight
        assert "Chefão do dia" not in [f.pill for f in result.fun_facts]

    def test_to_dict(self, sample_snapshot: DatasetSnapshot) -> None:
        data = build_advice(sample_snapshot.transactions).to_dict()

        assert set(data) == {
            "suggestions",
            "funFacts",
            "diffsNewestFirst",
            "diffsOldestFirst",
            "emptySuggestionsMessage",
            "emptyFunMessage",
        }
        assert data["suggestions"][0]["pill"] == "No alvo"
        assert data["funFacts"][0]["tone"] == "warn"
