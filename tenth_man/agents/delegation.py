"""
Tâches déléguées — Tenth Man.

Les rôles affectés à Claude ne sont pas lancés par le core : on produit
une instruction autonome que l'hôte exécute dans un contexte isolé.
L'hôte renvoie ensuite la sortie du sous-agent, normalisée ici en verdict.
"""

from __future__ import annotations

from typing import Any

from tenth_man.models import (
    AgentAssignment,
    AgentEngine,
    AgentRole,
    AgentStatus,
    AgentVerdict,
    ReviewInput,
    SubagentInstruction,
)
from tenth_man.parsers.response_parser import (
    extract_confidence,
    extract_decision,
    parse_agent_output,
)
from tenth_man.prompts import build_prompt

# Inspection du dépôt en lecture seule
READ_ONLY_TOOLS: tuple[str, ...] = ("Read", "Glob", "Grep")


def build_subagent_instruction(
    assignment: AgentAssignment, review_input: ReviewInput
) -> SubagentInstruction:
    # Prompt complet : le sous-agent produit déjà du JSON via ses propres consignes
    return SubagentInstruction(
        role=assignment.role,
        engine=assignment.engine,
        model=assignment.model,
        prompt=build_prompt(assignment.role, review_input),
        tools=list(READ_ONLY_TOOLS),
    )


def verdict_from_subagent_output(
    role: AgentRole,
    raw_output: str | dict[str, Any],
    model: str = "",
    engine: AgentEngine = AgentEngine.CLAUDE,
    duration_ms: int = 0,
) -> AgentVerdict:
    """Normalise la sortie renvoyée par l'hôte en verdict `completed`."""
    if isinstance(raw_output, dict):
        payload = raw_output
    else:
        payload = parse_agent_output(raw_output, role)

    return AgentVerdict(
        role=role,
        engine=engine,
        model=model,
        decision=extract_decision(payload),
        confidence=extract_confidence(payload),
        raw_output=payload,
        duration_ms=duration_ms,
        status=AgentStatus.COMPLETED,
    )
