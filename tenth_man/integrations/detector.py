"""
Détection des agents externes — Tenth Man.

Sonde les CLI installées (codex via npx, gemini) en parallèle.
Une CLI absente ou en échec est simplement ignorée.
"""

from __future__ import annotations

import asyncio
import logging

from tenth_man.integrations.process_runner import run_process
from tenth_man.models import AgentEngine

logger = logging.getLogger("tenth_man.detector")

PROBES: dict[AgentEngine, list[str]] = {
    AgentEngine.CODEX: ["npx", "codex", "--version"],
    AgentEngine.GEMINI: ["gemini", "--version"],
}


async def detect_agents(timeout: float = 10.0) -> set[AgentEngine]:
    """Retourne l'ensemble des moteurs externes utilisables."""
    engines = list(PROBES)
    outcomes = await asyncio.gather(
        *(run_process(PROBES[engine], timeout=timeout) for engine in engines),
        return_exceptions=True,
    )

    available: set[AgentEngine] = set()
    for engine, outcome in zip(engines, outcomes):
        if isinstance(outcome, BaseException):
            logger.debug(f"Sonde {engine.value} en erreur : {outcome}")
            continue
        if outcome.ok:
            available.add(engine)
        else:
            logger.debug(f"{engine.value} indisponible : {outcome.error}")

    logger.info(f"Agents externes détectés : {sorted(e.value for e in available) or 'aucun'}")
    return available
