"""
Orchestrateur principal — Tenth Man.

Coordonne un cycle de revue contradictoire :
  Étape 0 — Préparation (mode, arborescence .tenth-man/, audit id)
  Étape 1 — Affectation des rôles + exécution parallèle des agents externes
  Étape 2 — Consensus provisoire sur les verdicts disponibles
  Étape 3 — Rapport (standard) ou archivage (auto)
Les verdicts des sous-agents délégués sont réinjectés ensuite par
`merge_subagent_verdicts`, qui recalcule le consensus.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from tenth_man.agents.delegation import verdict_from_subagent_output
from tenth_man.agents.invoker import execute_agents
from tenth_man.agents.judge import compute_consensus
from tenth_man.agents.reporter import Reporter
from tenth_man.agents.resolver import describe_agent_config, resolve_agents
from tenth_man.config import RuntimeConfig, Settings, get_settings
from tenth_man.integrations import audit_store
from tenth_man.models import (
    AgentEngine,
    AgentRole,
    AgentStatus,
    AgentVerdict,
    Mode,
    ReviewInput,
    ReviewResult,
    ReviewStatus,
)
from tenth_man.utils.helpers import humanize_decision

logger = logging.getLogger("tenth_man.orchestrator")


class Orchestrator:
    """
    Chef d'orchestre Tenth Man.

    Pilote un cycle complet, de l'affectation des rôles jusqu'au rapport.
    Aucun état partagé entre deux cycles : tout passe par la RuntimeConfig.
    """

    def __init__(self, config: RuntimeConfig, settings: Settings | None = None):
        self._config = config
        self._settings = settings or get_settings()

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    # ════════════════════════════════════════
    #  WORKFLOW PRINCIPAL
    # ════════════════════════════════════════

    async def review(self, review_input: ReviewInput) -> ReviewResult:
        """
        Point d'entrée principal : exécute un cycle de revue complet.

        Args:
            review_input: le changement proposé (tâche, diff, fichiers, sévérité…)

        Returns:
            ReviewResult avec verdicts par agent, consensus provisoire,
            instructions de sous-agents en attente et consignes pour l'hôte.
        """
        start = time.perf_counter()

        # ── ÉTAPE 0 : Préparation ──
        mode = review_input.mode or self._config.default_mode
        review_input = review_input.model_copy(update={"mode": mode})
        self._prepare_repo()
        audit_id = audit_store.generate_audit_id()
        logger.info(f"🔟 Tenth Man — Début de la revue {audit_id} ({mode.value})")

        # ── ÉTAPE 1 : Affectation + exécution ──
        assignments = resolve_agents(self._config.available_agents, self._settings)
        agent_config = describe_agent_config(assignments)
        logger.info(f"👥 Panel : {agent_config}")

        batch = await execute_agents(assignments, review_input, self._config)

        # ── ÉTAPE 2 : Consensus provisoire ──
        consensus = compute_consensus(batch.verdicts)
        duration_ms = int((time.perf_counter() - start) * 1000)

        result = ReviewResult(
            audit_id=audit_id,
            status=self._status_for(batch.verdicts),
            mode=mode,
            severity=review_input.severity,
            duration_ms=duration_ms,
            agents=batch.verdicts,
            consensus=consensus,
            agent_config=agent_config,
            subagent_prompts=batch.subagent_prompts,
            summary_line=Reporter.build_summary_line(consensus, agent_config, duration_ms),
            review_input=review_input,
        )
        result = self._with_instruction(result)

        # ── ÉTAPE 3 : Rapport / archivage ──
        result = self._publish(result)

        logger.info(
            f"⚖️ Consensus : {humanize_decision(consensus.decision)} "
            f"(confiance : {consensus.confidence}), "
            f"{len(batch.subagent_prompts)} sous-agent(s) en attente"
        )
        return result

    # ════════════════════════════════════════
    #  Réinjection des verdicts délégués
    # ════════════════════════════════════════

    def merge_subagent_verdicts(
        self, result: ReviewResult, verdicts: list[AgentVerdict]
    ) -> ReviewResult:
        """
        Recalcule le consensus avec les verdicts renvoyés par l'hôte.

        Un verdict remplace celui du même rôle s'il existe déjà ; les
        instructions en attente correspondantes sont retirées. Appel
        explicite et ré-entrant : rien ne le déclenche automatiquement.
        """
        by_role = {v.role: v for v in result.agents}
        for verdict in verdicts:
            by_role[verdict.role] = verdict
        # Ordre stable : rôles existants d'abord, puis nouveaux rôles dans l'ordre reçu
        agents = list(by_role.values())

        merged_roles = {v.role for v in verdicts}
        pending = [p for p in result.subagent_prompts if p.role not in merged_roles]

        consensus = compute_consensus(agents)
        updated = result.model_copy(update={
            "agents": agents,
            "subagent_prompts": pending,
            "consensus": consensus,
            "status": self._status_for(agents),
            "summary_line": Reporter.build_summary_line(
                consensus, result.agent_config, result.duration_ms
            ),
        })
        updated = self._with_instruction(updated)

        logger.info(
            f"🔄 {len(verdicts)} verdict(s) réinjecté(s) — consensus : "
            f"{humanize_decision(consensus.decision)} ({consensus.confidence})"
        )
        # En mode auto la revue est déjà archivée
        if updated.mode == Mode.STANDARD:
            updated = self._publish(updated)
        return updated

    def merge_subagent_outputs(
        self,
        result: ReviewResult,
        outputs: list[tuple[AgentRole, str | dict[str, Any]]],
    ) -> ReviewResult:
        """Normalise les sorties brutes renvoyées par l'hôte puis les fusionne."""
        pending = {p.role: p for p in result.subagent_prompts}
        verdicts = []
        for role, raw in outputs:
            prompt = pending.get(role)
            verdicts.append(verdict_from_subagent_output(
                role,
                raw,
                model=prompt.model if prompt else self._settings.claude_model,
                engine=prompt.engine if prompt else AgentEngine.CLAUDE,
            ))
        return self.merge_subagent_verdicts(result, verdicts)

    def archive(self, result: ReviewResult) -> Path:
        """Clôt une revue standard : REVIEW.md/PLAN.md partent dans l'historique."""
        return audit_store.archive_to_history(self._config.repo_root, result)

    # ════════════════════════════════════════
    #  Helpers
    # ════════════════════════════════════════

    def _prepare_repo(self) -> None:
        root = self._config.repo_root
        audit_store.ensure_gitignore(root)
        audit_store.ensure_directories(root)

    @staticmethod
    def _status_for(verdicts: list[AgentVerdict]) -> ReviewStatus:
        if any(v.status == AgentStatus.TIMEOUT for v in verdicts):
            return ReviewStatus.PARTIAL
        return ReviewStatus.COMPLETED

    @staticmethod
    def _with_instruction(result: ReviewResult) -> ReviewResult:
        if result.mode == Mode.STANDARD:
            instruction = Reporter.build_standard_instruction(
                result.audit_id,
                Reporter.build_agent_summaries(result.agents),
                result.subagent_prompts,
            )
        else:
            instruction = Reporter.build_auto_instruction(result.subagent_prompts)
        return result.model_copy(update={"instruction_to_host": instruction})

    def _publish(self, result: ReviewResult) -> ReviewResult:
        """Écrit le rapport (standard) ou archive (auto). Une erreur disque n'invalide pas le résultat."""
        root = self._config.repo_root
        try:
            if result.mode == Mode.STANDARD:
                path = audit_store.write_review_file(root, Reporter.render_review_markdown(result))
                result = result.model_copy(update={"review_file": str(path)})
                audit_store.save_result(root, result)
            else:
                audit_store.archive_to_history(root, result)
        except OSError as exc:
            logger.error(f"Écriture du rapport échouée : {exc}")
        return result
