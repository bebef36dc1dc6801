"""
Reporter — Tenth Man.

Met en forme le résultat d'un cycle : rapport Markdown REVIEW.md,
ligne de résumé, résumés par agent et consignes pour l'hôte.
Aucune écriture disque ici (voir integrations/audit_store.py).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from tenth_man.models import (
    ROLE_LABELS,
    AgentVerdict,
    Consensus,
    Decision,
    ReviewResult,
    SubagentInstruction,
)
from tenth_man.parsers.findings import extract_issues, extract_recommendations
from tenth_man.utils.helpers import engine_label, format_seconds, humanize_decision

ACTIVE_REVIEW_PATH = ".tenth-man/active/REVIEW.md"

DECISION_EMOJI: dict[Decision, str] = {
    Decision.PROCEED: "✅",
    Decision.PROCEED_WITH_CHANGES: "⚠️",
    Decision.BLOCK: "🛑",
}


class Reporter:
    """Rendu texte des résultats de revue."""

    # ── Ligne de résumé ─────────────────────

    @staticmethod
    def build_summary_line(consensus: Consensus, agent_config: str, duration_ms: int) -> str:
        return (
            f"10th Man Protocol: {humanize_decision(consensus.decision)} | "
            f"{len(consensus.critical_issues)} critical issues | "
            f"{len(consensus.recommendations)} recommendations | "
            f"{agent_config} | {format_seconds(duration_ms)}"
        )

    # ── Résumés par agent ───────────────────

    @staticmethod
    def build_agent_summaries(verdicts: list[AgentVerdict]) -> str:
        lines = []
        for v in verdicts:
            emoji, label = ROLE_LABELS[v.role]
            lines.append(
                f"{emoji} {label} ({engine_label(v.engine)}): "
                f"{humanize_decision(v.decision)} (confidence: {v.confidence})"
            )
        return "\n".join(lines)

    @staticmethod
    def build_subagent_instructions(prompts: list[SubagentInstruction]) -> str:
        return "\n".join(
            f"Spawn a {ROLE_LABELS[p.role][1]} subagent with model \"{p.model}\" and tools "
            f"[{', '.join(p.tools)}]. This subagent must run in its own isolated context — "
            "do NOT pass other agents' findings to it."
            for p in prompts
        )

    # ── Consignes pour l'hôte ───────────────

    @classmethod
    def build_standard_instruction(
        cls, audit_id: str, agent_summaries: str, prompts: list[SubagentInstruction]
    ) -> str:
        instruction = (
            f"10th Man review complete (audit: {audit_id}). Full report: {ACTIVE_REVIEW_PATH}\n\n"
            "Present the summary to the user conversationally:\n\n"
            f"{agent_summaries or '(no external agent results yet)'}\n\n"
            f"Full report at {ACTIVE_REVIEW_PATH}. Ask the user how they would like to proceed."
        )
        if prompts:
            instruction += (
                "\n\nIMPORTANT: spawn ALL pending subagents listed in \"subagent_prompts\", "
                "one Task each, with the provided prompt verbatim and read-only tools. "
                "Never pass another agent's output into a Task.\n"
                f"{cls.build_subagent_instructions(prompts)}\n"
                "After ALL subagents have completed, merge their verdicts "
                "(tenth-man merge) before presenting the combined results."
            )
        instruction += (
            "\n\nPOST-APPROVAL WORKFLOW:\n"
            "1. Wait for the user's decision (approve / reject / approve with notes).\n"
            "2. After approval, write .tenth-man/active/PLAN.md addressing every critical issue.\n"
            "3. Present the plan for confirmation, then implement."
        )
        return instruction

    @classmethod
    def build_auto_instruction(cls, prompts: list[SubagentInstruction]) -> str:
        instruction = "10th Man review complete in AUTO mode."
        if prompts:
            instruction += (
                "\n\nSpawn ALL pending subagents listed in \"subagent_prompts\" with isolated "
                "contexts, then merge their verdicts into your plan.\n"
                f"{cls.build_subagent_instructions(prompts)}"
            )
        instruction += (
            "\n\nCreate an internal execution plan before coding: address all critical issues, "
            "incorporate relevant recommendations, phase the work with rollback points."
        )
        return instruction

    # ── REVIEW.md ───────────────────────────

    @classmethod
    def render_review_markdown(cls, result: ReviewResult, now: datetime | None = None) -> str:
        now = now or datetime.now(UTC)
        task = result.review_input.task_description if result.review_input else ""
        c = result.consensus

        lines = [
            "# 10th Man Protocol — Review Report",
            "",
            "> **Review the findings below, then tell your agent how to proceed.**",
            "",
            f"**Audit ID**: {result.audit_id}",
            f"**Date**: {now.isoformat()}",
            f"**Task**: {task}",
            f"**Severity**: {result.severity.value.upper()}",
            f"**Duration**: {format_seconds(result.duration_ms)}",
            f"**Agents**: {len(result.agents)} completed, "
            f"{len(result.subagent_prompts)} pending subagent",
            "",
            "---",
            "",
            "## Agent Reports",
        ]

        for agent in result.agents:
            lines.extend(cls._render_agent(agent))

        for prompt in result.subagent_prompts:
            emoji, label = ROLE_LABELS[prompt.role]
            lines.extend([
                "",
                f"### {emoji} {label} ({engine_label(prompt.engine, prompt.model)} · subagent)",
                "**Status**: PENDING — awaiting host agent to spawn subagent with isolated context",
                "",
                "---",
            ])

        issues_note = " (must address)" if c.critical_issues else ""
        lines.extend([
            "",
            "## Consensus",
            f"- **Verdict**: {DECISION_EMOJI[c.decision]} {humanize_decision(c.decision)}",
            f"- **Confidence**: {c.confidence}",
            f"- **Critical Issues**: {len(c.critical_issues)}{issues_note}",
            f"- **Recommendations**: {len(c.recommendations)}",
        ])
        if c.critical_issues:
            lines.append("")
            lines.append("### Critical Issues")
            lines.extend(f"- {issue}" for issue in c.critical_issues)
        if c.recommendations:
            lines.append("")
            lines.append("### Recommendations")
            lines.extend(f"- {rec}" for rec in c.recommendations)

        lines.extend([
            "",
            "---",
            f"*Generated by tenth-man · {now.isoformat()} · "
            f"Duration: {format_seconds(result.duration_ms)}*",
            "",
        ])
        return "\n".join(lines)

    @staticmethod
    def _render_agent(agent: AgentVerdict) -> list[str]:
        emoji, label = ROLE_LABELS[agent.role]
        duration = f" · {format_seconds(agent.duration_ms)}" if agent.duration_ms else ""
        lines = [
            "",
            f"### {emoji} {label} ({engine_label(agent.engine, agent.model)})",
            f"**Verdict: {humanize_decision(agent.decision)}** · Confidence: {agent.confidence}",
            f"**Status**: {agent.status.value}{duration}",
        ]
        if agent.error:
            lines.extend(["", f"**Error**: {agent.error}"])

        output: dict[str, Any] = agent.raw_output or {}
        if output.get("reasoning"):
            lines.extend(["", str(output["reasoning"])])

        issues = extract_issues(output)
        if issues:
            lines.extend(["", "**Critical Issues:**"])
            lines.extend(f"- {issue}" for issue in issues)
        recommendations = extract_recommendations(output)
        if recommendations:
            lines.extend(["", "**Recommendations:**"])
            lines.extend(f"- {rec}" for rec in recommendations)

        assessment = output.get("assessment")
        if isinstance(assessment, dict):
            lines.extend([
                "",
                "**Assessment:**",
                f"- Justified: {assessment.get('justified', 'N/A')}",
                f"- Complexity: {assessment.get('complexity_rating', 'N/A')}",
            ])
            if assessment.get("simpler_alternative"):
                lines.append(f"- Simpler alternative: {assessment['simpler_alternative']}")

        lines.extend(["", "---"])
        return lines
