"""
Invoker d'agents — Tenth Man.

Lance en parallèle toutes les affectations `subprocess`, chacune avec son
propre timeout ; les affectations `subagent_prompt` deviennent des
instructions pour l'hôte. Chaque affectation externe produit exactement
un verdict, même en cas d'échec ou de timeout.
"""

from __future__ import annotations

import asyncio
import logging

from tenth_man.agents.backends import get_backend
from tenth_man.agents.delegation import build_subagent_instruction
from tenth_man.config import RuntimeConfig
from tenth_man.integrations.process_runner import run_process
from tenth_man.models import (
    AgentAssignment,
    AgentStatus,
    AgentVerdict,
    Decision,
    InvocationBatch,
    InvocationMode,
    ProcessOutcome,
    ReviewInput,
)
from tenth_man.parsers.response_parser import (
    extract_confidence,
    extract_decision,
    parse_agent_output,
)
from tenth_man.prompts import build_structured_prompt

logger = logging.getLogger("tenth_man.invoker")

FAILURE_DECISION = Decision.PROCEED_WITH_CHANGES
FAILURE_CONFIDENCE = 0.3


def failure_verdict(
    assignment: AgentAssignment,
    status: AgentStatus,
    error: str,
    duration_ms: int = 0,
) -> AgentVerdict:
    """Verdict synthétique pour un agent en échec ou en timeout."""
    return AgentVerdict(
        role=assignment.role,
        engine=assignment.engine,
        model=assignment.model,
        decision=FAILURE_DECISION,
        confidence=FAILURE_CONFIDENCE,
        raw_output=None,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def verdict_from_outcome(
    assignment: AgentAssignment,
    outcome: ProcessOutcome,
    timeout_seconds: int,
) -> AgentVerdict:
    if outcome.timed_out:
        return failure_verdict(
            assignment,
            AgentStatus.TIMEOUT,
            f"Agent timed out after {timeout_seconds}s",
            outcome.duration_ms,
        )
    if not outcome.ok:
        return failure_verdict(
            assignment,
            AgentStatus.ERROR,
            f"Agent failed: {outcome.error or 'unknown error'}",
            outcome.duration_ms,
        )

    payload = parse_agent_output(outcome.stdout, assignment.role)
    return AgentVerdict(
        role=assignment.role,
        engine=assignment.engine,
        model=assignment.model,
        decision=extract_decision(payload),
        confidence=extract_confidence(payload),
        raw_output=payload,
        duration_ms=outcome.duration_ms,
        status=AgentStatus.COMPLETED,
    )


async def invoke_external(
    assignment: AgentAssignment,
    review_input: ReviewInput,
    config: RuntimeConfig,
) -> AgentVerdict:
    """Lance la CLI d'un agent externe et normalise sa réponse."""
    backend = get_backend(assignment.engine)
    backend._log_start(assignment)

    prompt = build_structured_prompt(assignment.role, review_input)
    outcome = await run_process(
        backend.build_command(prompt, assignment.model),
        timeout=config.timeout_seconds,
        cwd=config.repo_root,
        env=backend.env,
    )

    verdict = verdict_from_outcome(assignment, outcome, config.timeout_seconds)
    if verdict.status == AgentStatus.COMPLETED:
        backend._log_done(assignment, verdict.duration_ms)
    else:
        backend._log_failed(assignment, verdict.error or "")
    return verdict


async def execute_agents(
    assignments: list[AgentAssignment],
    review_input: ReviewInput,
    config: RuntimeConfig,
) -> InvocationBatch:
    """Exécute les agents externes en parallèle et prépare les sous-agents."""
    external = [a for a in assignments if a.via == InvocationMode.SUBPROCESS]
    delegated = [a for a in assignments if a.via == InvocationMode.SUBAGENT_PROMPT]

    if external:
        logger.info(f"🚀 Lancement de {len(external)} agent(s) externe(s) en parallèle…")

    # Attendre tous les agents, ne jamais rejeter
    results = await asyncio.gather(
        *(invoke_external(a, review_input, config) for a in external),
        return_exceptions=True,
    )

    verdicts: list[AgentVerdict] = []
    for assignment, result in zip(external, results):
        if isinstance(result, AgentVerdict):
            verdicts.append(result)
            continue
        logger.error(f"[{assignment.engine.value}] Erreur inattendue : {result}")
        verdicts.append(
            failure_verdict(assignment, AgentStatus.ERROR, f"Unexpected failure: {result}")
        )

    subagent_prompts = [build_subagent_instruction(a, review_input) for a in delegated]
    return InvocationBatch(verdicts=verdicts, subagent_prompts=subagent_prompts)
