"""
Moteur de consensus — Tenth Man.

Arbitre final : combine les verdicts disponibles en une décision unique
proceed / proceed_with_changes / block, avec un score de confiance et
les listes dédupliquées de problèmes et recommandations.

RÈGLES (verdicts `completed` uniquement) :
  1. aucun verdict complété → consensus dégradé (proceed_with_changes, 0.2)
  2. au moins 2 block        → block
  3. exactement 1 block      → proceed_with_changes
  4. au moins 1 changes      → proceed_with_changes
  5. sinon                   → proceed
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Iterable

from tenth_man.models import AgentStatus, AgentVerdict, Consensus, Decision
from tenth_man.parsers.findings import extract_issues, extract_recommendations

logger = logging.getLogger("tenth_man.judge")

DEGRADED_CONFIDENCE = 0.2
EMPTY_WEIGHT_CONFIDENCE = 0.5
COMPLETED_WEIGHT = 1.0
FAILED_WEIGHT = 0.3

TOTAL_FAILURE_ISSUE = "All agents failed or timed out; proceed with extreme caution"
TOTAL_FAILURE_RECOMMENDATION = "Re-run the protocol or manually review the changes"


def compute_consensus(verdicts: Iterable[AgentVerdict]) -> Consensus:
    """Calcule le consensus. Fonction pure : même entrée, même sortie."""
    verdicts = list(verdicts)
    completed = [v for v in verdicts if v.status == AgentStatus.COMPLETED]

    if not completed:
        logger.warning("Aucun agent n'a abouti — consensus dégradé.")
        return Consensus(
            decision=Decision.PROCEED_WITH_CHANGES,
            confidence=DEGRADED_CONFIDENCE,
            critical_issues=[TOTAL_FAILURE_ISSUE],
            recommendations=[TOTAL_FAILURE_RECOMMENDATION],
        )

    return Consensus(
        decision=tally_decision(completed),
        confidence=weighted_confidence(verdicts),
        critical_issues=_dedupe(issue for v in verdicts for issue in extract_issues(v.raw_output)),
        recommendations=_dedupe(
            rec for v in verdicts for rec in extract_recommendations(v.raw_output)
        ),
    )


def tally_decision(completed: list[AgentVerdict]) -> Decision:
    counts = Counter(v.decision for v in completed)

    if counts[Decision.BLOCK] >= 2:
        return Decision.BLOCK
    # Un bloqueur isolé : jamais ignoré, jamais escaladé en block
    if counts[Decision.BLOCK] == 1:
        return Decision.PROCEED_WITH_CHANGES
    if counts[Decision.PROCEED_WITH_CHANGES] >= 1:
        return Decision.PROCEED_WITH_CHANGES
    return Decision.PROCEED


def weighted_confidence(verdicts: list[AgentVerdict]) -> float:
    """Moyenne pondérée (1.0 complété, 0.3 sinon), arrondie au centième (égalités vers le haut)."""
    weights = [
        COMPLETED_WEIGHT if v.status == AgentStatus.COMPLETED else FAILED_WEIGHT
        for v in verdicts
    ]
    total_weight = math.fsum(weights)
    if total_weight == 0:
        return EMPTY_WEIGHT_CONFIDENCE

    # fsum : somme exacte, indépendante de l'ordre des verdicts
    weighted = math.fsum(v.confidence * w for v, w in zip(verdicts, weights))
    return _round_half_up(min(1.0, max(0.0, weighted / total_weight)))


def _round_half_up(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _dedupe(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))
