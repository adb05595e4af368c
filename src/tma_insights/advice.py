"""
Coaching suggestions and fun facts for TMA Insights.

PURPOSE: Turn the day's differences into short, tiered advice and playful trivia.
AI CONTEXT: Pure data processing. Output is view-model data; rendering lives elsewhere.

SUGGESTIONS (in order):
1. Last-10 average: "No alvo" (<= 15s) / "Ajuste fino" (<= 60s) / "Atenção"
2. Margin: balance inside or outside ±10 min
3. Streak: reinforce at 5+, recovery tip at 0, nothing in between
4. Micro-goal: "reduce ~Ns per transaction" when the mean deviation exceeds 20s
5. Closest vs farthest transaction

FUN FACTS:
Count, returns, Complexas, 20s hits, and |balance| converted into breaks,
noodles, episodes and songs. Each conversion only shows up when >= 1.

Missing differences are read as 0 here, unlike the achievement engine
which ignores them; the advice panel always speaks about every transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .models import TransactionRecord
from .timeutils import clamp, format_signed_compact, round_half_up, seconds_to_short, to_finite

__all__ = [
    "EMPTY_SUGGESTIONS_MESSAGE",
    "EMPTY_FUN_MESSAGE",
    "Suggestion",
    "FunFact",
    "AdviceResult",
    "build_advice",
]

EMPTY_SUGGESTIONS_MESSAGE = "Sem sugestões (ainda). Faça algumas transações para gerar insights."
EMPTY_FUN_MESSAGE = "Sem estatísticas ainda — faz uma conta e volta aqui."


@dataclass(frozen=True)
class Suggestion:
    """One coaching card: tone (good/warn/bad), pill label, text, modal details."""

    tone: str
    pill: str
    text: str
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {"tone": self.tone, "pill": self.pill, "text": self.text, "details": self.details}


@dataclass(frozen=True)
class FunFact:
    pill: str
    text: str
    details: str
    tone: str = "warn"

    def to_dict(self) -> dict[str, Any]:
        return {"tone": self.tone, "pill": self.pill, "text": self.text, "details": self.details}


@dataclass(frozen=True)
class AdviceResult:
    """
    Suggestions, fun facts and the difference sequences they were built from.

    For an empty day both lists are empty and the two *_message fields
    carry the placeholder text to show instead.
    """

    suggestions: list[Suggestion] = field(default_factory=list)
    fun_facts: list[FunFact] = field(default_factory=list)
    diffs_newest_first: list[float] = field(default_factory=list)
    diffs_oldest_first: list[float] = field(default_factory=list)
    empty_suggestions_message: str = ""
    empty_fun_message: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.suggestions and not self.fun_facts

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "funFacts": [f.to_dict() for f in self.fun_facts],
            "diffsNewestFirst": self.diffs_newest_first,
            "diffsOldestFirst": self.diffs_oldest_first,
            "emptySuggestionsMessage": self.empty_suggestions_message,
            "emptyFunMessage": self.empty_fun_message,
        }


def _mean(values: Sequence[float]) -> float:
    return sum(values) / max(1, len(values))


def _recent_average_suggestion(last: Sequence[float]) -> Suggestion:
    avg = _mean(last)
    k = len(last)
    label = format_signed_compact(avg)
    if abs(avg) <= Config.ON_TARGET_SECONDS:
        return Suggestion(
            "good",
            "No alvo",
            f"Últimas {k}: média {label} (bem perto do TMA).",
            f"Como eu leio isso:\n- Eu pego as últimas {k} contas e faço a média de (Gasto - TMA)\n\n"
            "Interpretação:\n- O sinal (+/-) mostra a direção\n"
            '- "Bem" aqui é ficar perto de 0 e manter o saldo do dia dentro de ±10 min '
            "(positivo ou negativo)\n\nDica:\n- Mantém o padrão e evita outliers.",
        )
    if abs(avg) <= Config.NEAR_SECONDS:
        return Suggestion(
            "warn",
            "Ajuste fino",
            f"Últimas {k}: média {label} (oscilando).",
            "Você está oscilando um pouco.\n\nO que ajuda:\n"
            "- Padronizar o começo (abrir telas, conferir campos antes)\n"
            "- Buscar consistência: reduzir |Gasto - TMA|\n\n"
            "Meta real do dia:\n- Estar dentro da margem de ±10 min no saldo.",
        )
    return Suggestion(
        "bad",
        "Atenção",
        f"Últimas {k}: média {label} (longe do TMA).",
        "Aqui o foco não é ficar negativo, é reduzir o desvio.\n\nSugestões rápidas:\n"
        "- Tenta derrubar o |Gasto - TMA| nas próximas contas\n"
        "- Se o saldo do dia estiver fora da margem, um ajuste constante de 20–40s por conta "
        "já muda o final\n"
        "- Use o histograma para ver se é “padrão do processo” ou “1 conta muito fora”.",
    )


def _margin_suggestion(saldo: float) -> Suggestion:
    label = format_signed_compact(saldo)
    if abs(saldo) <= Config.BALANCE_MARGIN_SECONDS:
        return Suggestion(
            "good",
            "Margem",
            f"Saldo do dia: {label} (dentro de ±10 min).",
            "Regra do “bem”:\n- Fechar / manter o dia dentro de ±10 min (positivo ou negativo)\n\n"
            "Leitura rápida:\n- Se o saldo está dentro da margem, você está bem mesmo que esteja positivo.",
        )
    return Suggestion(
        "bad",
        "Margem",
        f"Saldo do dia: {label} (fora de ±10 min).",
        "Regra do “bem”:\n- Dentro de ±10 min (positivo ou negativo)\n\n"
        "Como voltar:\n- Reduzir |Gasto - TMA| nas próximas contas\n"
        "- Evitar outliers (1 conta grande pesa muito no saldo).",
    )


def _streak_suggestion(diffs_newest_first: Sequence[float]) -> Suggestion | None:
    streak = 0
    for diff in diffs_newest_first:
        if abs(diff) > Config.NEAR_SECONDS:
            break
        streak += 1

    if streak >= Config.STREAK_GOAL:
        return Suggestion(
            "good",
            "Sequência",
            f"Sequência atual: {streak} contas perto do TMA (±1 min).",
            "Regra:\n- Conta “perto do TMA” = |Gasto - TMA| ≤ 1 min\n\n"
            "Essa sequência é só das contas mais recentes.\n\n"
            "Dica:\n- Quando a sequência está boa, protege ela: mesmo ritual, menos variação.",
        )
    if streak == 0:
        return Suggestion(
            "warn",
            "Quebra",
            "A última conta saiu do “perto do TMA” (±1 min). Micro-pausa ajuda.",
            "Às vezes 1 conta fora do padrão “contamina” o ritmo.\n\n"
            "Dica de recuperação (30s):\n- Respira, organiza a próxima conta\n"
            "- Abre o que você vai precisar antes de começar\n\n"
            "Objetivo: reduzir |Gasto - TMA| e voltar pra margem.",
        )
    return None


def _micro_goal_suggestion(diffs: Sequence[float]) -> Suggestion:
    avg_all = _mean(diffs)
    micro_goal = round_half_up(abs(avg_all))
    if micro_goal > Config.MICRO_GOAL_THRESHOLD_SECONDS:
        goal = clamp(micro_goal, 0, Config.MICRO_GOAL_CAP_SECONDS)
        projected = goal * Config.MICRO_GOAL_PROJECTION_COUNT
        return Suggestion(
            "warn",
            "Meta",
            f"Meta simples: reduzir ~{seconds_to_short(goal)} de |diferença| por conta.",
            f"Por que isso funciona:\n- {seconds_to_short(goal)} por conta parece pouco\n"
            f"- Em {Config.MICRO_GOAL_PROJECTION_COUNT} contas vira ~{seconds_to_short(projected)} no saldo\n\n"
            "Sugestão prática:\n- O objetivo é reduzir |Gasto - TMA| (não “ficar negativo”)\n"
            "- E manter o saldo dentro de ±10 min.",
        )
    return Suggestion(
        "good",
        "Meta",
        "Você está com desvio pequeno em média. Mantém o ritmo.",
        f"Média do dia (referência):\n- média (Gasto - TMA): {format_signed_compact(avg_all)}\n"
        f"- média |Gasto - TMA|: {seconds_to_short(_mean([abs(d) for d in diffs]))}\n\n"
        "Leitura:\n- Desvio pequeno + consistência ajuda a ficar dentro da margem.",
    )


def _closest_farthest_suggestion(diffs: Sequence[float]) -> Suggestion:
    # first occurrence wins on ties, in newest-first order
    closest = min(diffs, key=abs)
    farthest = max(diffs, key=abs)
    return Suggestion(
        "warn",
        "Olho vivo",
        f"Mais perto do TMA: {format_signed_compact(closest)}. "
        f"Mais longe: {format_signed_compact(farthest)}.",
        "Isso olha para |Gasto - TMA| (distância do alvo).\n\n"
        "Como usar:\n- Se a “mais longe” foi por motivo recorrente, achou um vazamento\n"
        "- Se foi algo raro, segue o jogo e foca em consistência.",
    )


def _fun_facts(
    transactions: Sequence[TransactionRecord], diffs: Sequence[float], saldo: float
) -> list[FunFact]:
    abs_saldo = abs(saldo)
    abs_diffs = [abs(d) for d in diffs]
    return_count = sum(1 for tx in transactions if tx.is_return)
    complex_count = sum(1 for tx in transactions if tx.is_complex)
    near20 = sum(1 for d in abs_diffs if d <= Config.PRECISE_SECONDS)
    max_abs = max(abs_diffs) if abs_diffs else 0

    facts = [
        FunFact(
            "Maratona",
            f"Hoje você registrou {len(transactions)} contas.",
            "Só pra dar clima de “modo história”.",
        )
    ]
    if return_count > 0:
        facts.append(
            FunFact("Déjà vu", f"Teve {return_count} retorno(s) hoje.", "O universo insistindo na mesma quest.")
        )
    if complex_count > 0:
        facts.append(
            FunFact("Tijolinhos", f"Você encarou {complex_count} conta(s) Complexa(s).", "Respeito.")
        )
    if near20 > 0:
        facts.append(
            FunFact("Sniper", f"Você acertou {near20} conta(s) a até 20s do TMA.", "Precisão cirúrgica.")
        )

    conversions = [
        (
            Config.BREAK_SECONDS,
            "Pausas clandestinas",
            "Sua distância do zero dá ~{n} pausas clandestinas de 15 minutos.",
            "Conversão proibida pela CLT (brincadeira).",
        ),
        (
            Config.NOODLE_SECONDS,
            "Miojo",
            "Seu |saldo| dá pra cozinhar {n} miojo(s) de 3 minutos.",
            "Gastronomia baseada em segundos.",
        ),
        (
            Config.EPISODE_SECONDS,
            "Série",
            "Seu |saldo| equivale a {n} episódio(s) de 12 minutos.",
            "Atenção: pode viciar.",
        ),
        (
            Config.SONG_SECONDS,
            "Playlist",
            "Ou {n} músicas de ~3:30 (sem pular o refrão).",
            "Dá pra trocar por outra métrica quando quiser.",
        ),
    ]
    for unit, pill, template, details in conversions:
        n = int(abs_saldo // unit)
        if n > 0:
            facts.append(FunFact(pill, template.format(n=n), details))

    if max_abs > 0:
        facts.append(
            FunFact(
                "Chefão do dia",
                f"Maior desvio do TMA: {seconds_to_short(max_abs)}.",
                "O boss apareceu e você sobreviveu.",
            )
        )
    return facts


def build_advice(
    transactions: Sequence[TransactionRecord], balance_seconds: Any = None
) -> AdviceResult:
    """
    Build the coaching suggestions and fun facts for one day.

    Business context: The suggestions panel answers "what should I change in
    the next few transactions?", so it looks at the newest ten first and
    only then at the whole day.

    Args:
        transactions: Records newest first.
        balance_seconds: Day balance; when not a finite number the sum of
            differences is used instead.

    Returns:
        AdviceResult. With no transactions both lists are empty and the
        placeholder messages are set.

    Example:
        >>> result = build_advice(snapshot.transactions, snapshot.balance_seconds)
        >>> [s.pill for s in result.suggestions][:2]
        ['No alvo', 'Margem']
    """
    records = list(transactions)
    if not records:
        return AdviceResult(
            empty_suggestions_message=EMPTY_SUGGESTIONS_MESSAGE,
            empty_fun_message=EMPTY_FUN_MESSAGE,
        )

    diffs = [tx.diff_or_zero for tx in records]
    balance = to_finite(balance_seconds)
    saldo = balance if balance is not None else sum(diffs)

    suggestions = [
        _recent_average_suggestion(diffs[: Config.ADVICE_WINDOW]),
        _margin_suggestion(saldo),
    ]
    streak = _streak_suggestion(diffs)
    if streak is not None:
        suggestions.append(streak)
    suggestions.append(_micro_goal_suggestion(diffs))
    suggestions.append(_closest_farthest_suggestion(diffs))

    return AdviceResult(
        suggestions=suggestions,
        fun_facts=_fun_facts(records, diffs, saldo),
        diffs_newest_first=diffs,
        diffs_oldest_first=list(reversed(diffs)),
    )
