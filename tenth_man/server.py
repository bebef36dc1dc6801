"""
API HTTP — Tenth Man.

Expose le protocole aux agents hôtes qui préfèrent HTTP à la CLI :
revue, consensus pur, configuration, réinjection des sous-agents, historique.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from tenth_man import __version__
from tenth_man.agents.judge import compute_consensus
from tenth_man.agents.resolver import describe_agent_config, resolve_agents
from tenth_man.config import (
    ConfigOverrides,
    build_runtime_config,
    get_settings,
    load_repo_config,
    merge_config_layers,
    save_repo_config,
)
from tenth_man.integrations import audit_store
from tenth_man.models import (
    AgentAssignment,
    AgentRole,
    AgentVerdict,
    AuditEntry,
    Consensus,
    Decision,
    Mode,
    ReviewInput,
    ReviewResult,
    Severity,
)
from tenth_man.orchestrator import Orchestrator

logger = logging.getLogger("tenth_man.server")


# ── Corps de requête / réponse ──────────────

class ReviewRequest(BaseModel):
    review_input: ReviewInput
    overrides: Optional[ConfigOverrides] = None


class SubagentOutput(BaseModel):
    role: AgentRole
    output: str | dict[str, Any]


class MergeRequest(BaseModel):
    outputs: list[SubagentOutput] = Field(..., min_length=1)


class ConfigureResponse(BaseModel):
    persisted: ConfigOverrides
    agent_config: str
    assignments: list[AgentAssignment]
    timeout_seconds: int
    default_mode: Mode
    auto_trigger_patterns: list[str]


def create_app(repo_root: Path | None = None) -> FastAPI:
    """Crée et configure l'application FastAPI pour un dépôt donné."""
    root = Path(repo_root or Path.cwd()).resolve()

    app = FastAPI(
        title="Tenth Man",
        description="Adversarial review of proposed code changes",
        version=__version__,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "tenth-man", "version": __version__}

    @app.post("/review", response_model=ReviewResult)
    async def review(request: ReviewRequest):
        """Exécute un cycle complet et renvoie le résultat (consensus provisoire inclus)."""
        config = await build_runtime_config(root, request.overrides)
        logger.info(f"Revue demandée : {request.review_input.task_description[:80]}")
        return await Orchestrator(config).review(request.review_input)

    @app.post("/consensus", response_model=Consensus)
    async def consensus(verdicts: list[AgentVerdict]):
        """Consensus pur sur une liste de verdicts, sans effet de bord."""
        return compute_consensus(verdicts)

    @app.post("/merge", response_model=ReviewResult)
    async def merge(request: MergeRequest):
        """Réinjecte les sorties des sous-agents dans la revue active."""
        result = audit_store.load_result(root)
        if result is None:
            raise HTTPException(status_code=404, detail="No active review.")
        config = merge_config_layers(root, None, load_repo_config(root), get_settings())
        return Orchestrator(config).merge_subagent_outputs(
            result, [(o.role, o.output) for o in request.outputs]
        )

    @app.post("/configure", response_model=ConfigureResponse)
    async def configure(overrides: ConfigOverrides):
        """Persiste les overrides fournis et renvoie le panel résolu."""
        persisted = save_repo_config(root, overrides)
        config = await build_runtime_config(root)
        assignments = resolve_agents(config.available_agents)
        return ConfigureResponse(
            persisted=persisted,
            agent_config=describe_agent_config(assignments),
            assignments=assignments,
            timeout_seconds=config.timeout_seconds,
            default_mode=config.default_mode,
            auto_trigger_patterns=config.auto_trigger_patterns,
        )

    @app.get("/history", response_model=list[AuditEntry])
    async def history(
        last: int = 5,
        severity: Optional[Severity] = None,
        verdict: Optional[Decision] = None,
    ):
        if last < 1:
            raise HTTPException(status_code=400, detail="last must be >= 1")
        return audit_store.read_history(root, last_n=last, severity=severity, verdict=verdict)

    return app
