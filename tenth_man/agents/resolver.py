"""
Resolver d'agents — Tenth Man.

Affecte chaque rôle contradicteur à un backend, de façon déterministe :
  - codex + gemini → codex, gemini, sous-agent claude
  - un seul externe → externe + 2 sous-agents claude
  - aucun          → 3 sous-agents claude isolés
Le Devil's Advocate reçoit toujours le premier backend externe.
"""

from __future__ import annotations

import logging
from typing import Iterable

from tenth_man.config import Settings, get_settings
from tenth_man.models import (
    EXTERNAL_ENGINES,
    ROLE_ORDER,
    AgentAssignment,
    AgentEngine,
    InvocationMode,
)

logger = logging.getLogger("tenth_man.resolver")


def resolve_agents(
    available: Iterable[AgentEngine | str],
    settings: Settings | None = None,
) -> list[AgentAssignment]:
    """Retourne exactement une affectation par rôle, dans l'ordre des rôles."""
    settings = settings or get_settings()

    wanted: set[AgentEngine] = set()
    for item in available:
        try:
            wanted.add(AgentEngine(item))
        except ValueError:
            logger.debug(f"Backend inconnu ignoré : {item!r}")

    externals = [engine for engine in EXTERNAL_ENGINES if engine in wanted]

    assignments: list[AgentAssignment] = []
    for index, role in enumerate(ROLE_ORDER):
        if index < len(externals):
            engine, via = externals[index], InvocationMode.SUBPROCESS
        else:
            engine, via = AgentEngine.CLAUDE, InvocationMode.SUBAGENT_PROMPT
        assignments.append(
            AgentAssignment(role=role, engine=engine, model=settings.model_for(engine), via=via)
        )
    return assignments


def describe_agent_config(assignments: list[AgentAssignment]) -> str:
    """Description courte du panel, pour l'utilisateur."""
    external = [a for a in assignments if a.via == InvocationMode.SUBPROCESS]
    internal = [a for a in assignments if a.via == InvocationMode.SUBAGENT_PROMPT]
    claude_model = internal[0].model if internal else ""

    if not external:
        return (
            f"{len(internal)} isolated Claude ({claude_model}) subagents — "
            "separate context windows, zero opinion bleed"
        )

    parts = [f"{a.engine.value} ({a.model})" for a in external]
    if len(internal) == 1:
        parts.append(f"Claude ({claude_model})")
    elif internal:
        parts.append(f"{len(internal)}× Claude ({claude_model}) isolated subagents")
    return f"{len(assignments)} agents: " + " + ".join(parts)
