"""
Point d'entrée CLI — Tenth Man.

Commandes :
  - review    : tenth-man review --task "..." --changes-file plan.md --file src/auth/login.py
  - configure : tenth-man configure --agent codex --timeout 240
  - history   : tenth-man history --last 10 --verdict block
  - merge     : tenth-man merge --verdict pragmatist out.json
  - archive   : tenth-man archive
  - check     : tenth-man check src/auth/login.py
  - serve     : tenth-man serve --port 8080
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tenth_man.agents.reporter import DECISION_EMOJI
from tenth_man.agents.resolver import describe_agent_config, resolve_agents
from tenth_man.config import (
    ConfigOverrides,
    MAX_TIMEOUT_SECONDS,
    MIN_TIMEOUT_SECONDS,
    RuntimeConfig,
    build_runtime_config,
    get_settings,
    load_repo_config,
    merge_config_layers,
    save_repo_config,
)
from tenth_man.integrations import audit_store
from tenth_man.models import (
    AgentEngine,
    AgentRole,
    AgentStatus,
    Decision,
    Mode,
    ReviewInput,
    ReviewResult,
    Severity,
    role_label,
)
from tenth_man.orchestrator import Orchestrator
from tenth_man.utils.helpers import engine_label, format_seconds, humanize_decision
from tenth_man.utils.logger import setup_logging

console = Console()

_ENGINES = click.Choice([e.value for e in AgentEngine])
_ROLES = click.Choice([r.value for r in AgentRole])
_SEVERITIES = click.Choice([s.value for s in Severity])
_DECISIONS = click.Choice([d.value for d in Decision])
_MODES = click.Choice([m.value for m in Mode])
_TIMEOUT = click.IntRange(MIN_TIMEOUT_SECONDS, MAX_TIMEOUT_SECONDS)


# ════════════════════════════════════════════
#  CLI
# ════════════════════════════════════════════

@click.group()
@click.option(
    "--repo-root", "-C",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Racine du dépôt revu (défaut : répertoire courant)",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING… (défaut : TENTH_MAN_LOG_LEVEL)")
@click.pass_context
def main(ctx: click.Context, repo_root: Path, log_level: str | None) -> None:
    """🔟 Tenth Man — Revue contradictoire des changements proposés."""
    setup_logging(log_level)
    ctx.obj = {"repo_root": repo_root.resolve()}


@main.command()
@click.option("--task", "-t", required=True, help="Ce que l'agent s'apprête à faire")
@click.option("--changes", default=None, help="Diff, plan ou description du changement")
@click.option(
    "--changes-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Fichier contenant le diff ou le plan",
)
@click.option("--file", "-f", "affected_files", multiple=True, help="Fichier impacté (répétable)")
@click.option("--severity", "-s", type=_SEVERITIES, default=Severity.HIGH.value, show_default=True)
@click.option("--context", "context_files", multiple=True, help="Fichier de contexte (répétable)")
@click.option("--mode", type=_MODES, default=None, help="auto / standard (défaut : config)")
@click.option("--timeout", type=_TIMEOUT, default=None, help="Timeout par agent (secondes)")
@click.option("--agent", "agents", type=_ENGINES, multiple=True, help="Backend disponible (répétable)")
@click.option("--json-output", is_flag=True, help="Sortie JSON brute")
@click.pass_context
def review(
    ctx: click.Context,
    task: str,
    changes: str | None,
    changes_file: Path | None,
    affected_files: tuple[str, ...],
    severity: str,
    context_files: tuple[str, ...],
    mode: str | None,
    timeout: int | None,
    agents: tuple[str, ...],
    json_output: bool,
) -> None:
    """Soumet un changement proposé au panel contradictoire."""
    if changes_file is not None:
        changes = changes_file.read_text(encoding="utf-8")
    if not changes:
        raise click.UsageError("--changes ou --changes-file est requis.")

    review_input = ReviewInput(
        task_description=task,
        proposed_changes=changes,
        affected_files=list(affected_files),
        severity=Severity(severity),
        context_files=list(context_files) or None,
        mode=Mode(mode) if mode else None,
    )
    overrides = ConfigOverrides(
        available_agents=[AgentEngine(a) for a in agents] or None,
        timeout_seconds=timeout,
    )

    if not json_output:
        console.print(Panel(
            f"[bold cyan]{escape(task)}[/]\n"
            f"Sévérité : {severity.upper()} · Fichiers : {len(affected_files)}",
            title="🔟 Tenth Man",
        ))

    result = asyncio.run(_run_review(ctx.obj["repo_root"], review_input, overrides))

    if json_output:
        console.print_json(result.model_dump_json(indent=2))
    else:
        _display_result(result)


async def _run_review(
    repo_root: Path, review_input: ReviewInput, overrides: ConfigOverrides
) -> ReviewResult:
    """Lance un cycle complet."""
    config = await build_runtime_config(repo_root, overrides)
    orchestrator = Orchestrator(config)
    return await orchestrator.review(review_input)


@main.command()
@click.option("--agent", "agents", type=_ENGINES, multiple=True, help="Backend disponible (répétable)")
@click.option("--timeout", type=_TIMEOUT, default=None, help="Timeout par agent (secondes)")
@click.option("--trigger-pattern", "patterns", multiple=True, help="Glob d'auto-déclenchement")
@click.option("--mode", type=_MODES, default=None, help="Mode par défaut")
@click.pass_context
def configure(
    ctx: click.Context,
    agents: tuple[str, ...],
    timeout: int | None,
    patterns: tuple[str, ...],
    mode: str | None,
) -> None:
    """Persiste des overrides dans .tenth-man/config.json et affiche le panel."""
    repo_root: Path = ctx.obj["repo_root"]
    overrides = ConfigOverrides(
        available_agents=[AgentEngine(a) for a in agents] or None,
        timeout_seconds=timeout,
        auto_trigger_patterns=list(patterns) or None,
        default_mode=Mode(mode) if mode else None,
    )
    if overrides.model_dump(exclude_none=True):
        save_repo_config(repo_root, overrides)
        console.print(f"[green]Configuration enregistrée dans {repo_root / '.tenth-man'}[/]")

    config = asyncio.run(build_runtime_config(repo_root))
    _display_config(config)


@main.command()
@click.option("--last", "-n", "last_n", type=click.IntRange(min=1), default=5, show_default=True)
@click.option("--severity", type=_SEVERITIES, default=None)
@click.option("--verdict", type=_DECISIONS, default=None)
@click.option("--json-output", is_flag=True, help="Sortie JSON brute")
@click.pass_context
def history(
    ctx: click.Context,
    last_n: int,
    severity: str | None,
    verdict: str | None,
    json_output: bool,
) -> None:
    """Affiche les revues archivées (plus récentes en premier)."""
    entries = audit_store.read_history(
        ctx.obj["repo_root"],
        last_n=last_n,
        severity=Severity(severity) if severity else None,
        verdict=Decision(verdict) if verdict else None,
    )

    if json_output:
        console.print_json(data=[e.model_dump(mode="json") for e in entries])
        return
    if not entries:
        console.print("[yellow]Aucune revue archivée.[/]")
        return

    table = Table(title="📜 Historique 10th Man")
    table.add_column("Audit", style="cyan")
    table.add_column("Date")
    table.add_column("Sévérité")
    table.add_column("Verdict", justify="center")
    table.add_column("Tâche")
    table.add_column("Durée", justify="right")
    for e in entries:
        table.add_row(
            e.audit_id,
            e.timestamp.strftime("%Y-%m-%d %H:%M"),
            e.severity.value.upper(),
            f"{DECISION_EMOJI[e.verdict]} {humanize_decision(e.verdict)}",
            e.task[:60],
            format_seconds(e.duration_ms),
        )
    console.print(table)


@main.command()
@click.option(
    "--verdict", "verdicts",
    type=(_ROLES, click.Path(exists=True, dir_okay=False, path_type=Path)),
    multiple=True,
    required=True,
    help="Rôle et fichier contenant la sortie du sous-agent (répétable)",
)
@click.option("--json-output", is_flag=True, help="Sortie JSON brute")
@click.pass_context
def merge(ctx: click.Context, verdicts: tuple[tuple[str, Path], ...], json_output: bool) -> None:
    """Réinjecte les sorties des sous-agents dans la revue active."""
    repo_root: Path = ctx.obj["repo_root"]
    result = _require_active_result(repo_root)

    outputs = [(AgentRole(role), path.read_text(encoding="utf-8")) for role, path in verdicts]
    updated = Orchestrator(_offline_config(repo_root)).merge_subagent_outputs(result, outputs)

    if json_output:
        console.print_json(updated.model_dump_json(indent=2))
    else:
        _display_result(updated)


@main.command()
@click.pass_context
def archive(ctx: click.Context) -> None:
    """Archive la revue active (REVIEW.md, PLAN.md) dans l'historique."""
    repo_root: Path = ctx.obj["repo_root"]
    result = _require_active_result(repo_root)
    target = Orchestrator(_offline_config(repo_root)).archive(result)
    console.print(f"[green]📦 Revue {result.audit_id} archivée :[/] {target}")


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def check(ctx: click.Context, paths: tuple[str, ...]) -> None:
    """Code de sortie 0 si un chemin impose une revue, 1 sinon."""
    config = _offline_config(ctx.obj["repo_root"])
    matched = config.matches_auto_trigger(paths)
    for path in matched:
        console.print(f"🔟 {path}")
    ctx.exit(0 if matched else 1)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8080, type=int, show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Lance l'API HTTP (FastAPI)."""
    _run_server(ctx.obj["repo_root"], host, port)


# ════════════════════════════════════════════
#  Helpers
# ════════════════════════════════════════════

def _offline_config(repo_root: Path) -> RuntimeConfig:
    """Config sans détection des CLI (inutile hors d'un cycle de revue)."""
    return merge_config_layers(repo_root, None, load_repo_config(repo_root), get_settings())


def _require_active_result(repo_root: Path) -> ReviewResult:
    result = audit_store.load_result(repo_root)
    if result is None:
        console.print("[bold red]Aucune revue active.[/] Lancez d'abord `tenth-man review`.")
        sys.exit(1)
    return result


def _display_result(result: ReviewResult) -> None:
    """Affiche le résultat d'un cycle en mode Rich dans le terminal."""
    c = result.consensus
    color = {
        Decision.PROCEED: "green",
        Decision.PROCEED_WITH_CHANGES: "yellow",
        Decision.BLOCK: "red",
    }[c.decision]

    # Consensus
    console.print()
    console.print(Panel(
        f"[bold {color}]{DECISION_EMOJI[c.decision]} {humanize_decision(c.decision)}[/]  —  "
        f"Confiance : [bold]{c.confidence}[/]\n"
        f"{result.agent_config}",
        title=f"⚖️ Consensus · audit {result.audit_id}",
        border_style=color,
    ))

    # Agents
    table = Table(title="\n👥 Panel")
    table.add_column("Rôle", style="cyan")
    table.add_column("Backend")
    table.add_column("Verdict", justify="center")
    table.add_column("Confiance", justify="right")
    table.add_column("Statut")
    for agent in result.agents:
        status_style = "green" if agent.status == AgentStatus.COMPLETED else "red"
        table.add_row(
            role_label(agent.role),
            engine_label(agent.engine, agent.model),
            humanize_decision(agent.decision),
            str(agent.confidence),
            f"[{status_style}]{agent.status.value}[/]",
        )
    for prompt in result.subagent_prompts:
        table.add_row(
            role_label(prompt.role),
            engine_label(prompt.engine, prompt.model),
            "—",
            "—",
            "[yellow]pending[/]",
        )
    console.print(table)

    if c.critical_issues:
        console.print("\n[bold red]🛑 Problèmes critiques :[/]")
        for i, issue in enumerate(c.critical_issues, 1):
            console.print(f"  {i}. {issue}", markup=False)
    if c.recommendations:
        console.print("\n[bold]💡 Recommandations :[/]")
        for rec in c.recommendations:
            console.print(f"  • {rec}", markup=False)

    if result.review_file:
        console.print(f"\n📄 Rapport : {result.review_file}")
    if result.subagent_prompts:
        console.print(
            f"\n[yellow]{len(result.subagent_prompts)} sous-agent(s) en attente[/] — "
            "utilisez --json-output pour récupérer les prompts, puis `tenth-man merge`."
        )
    console.print(f"\n{result.summary_line}", markup=False)
    console.print()


def _display_config(config: RuntimeConfig) -> None:
    assignments = resolve_agents(config.available_agents)

    table = Table(title="🔟 Panel résolu")
    table.add_column("Rôle", style="cyan")
    table.add_column("Backend")
    table.add_column("Invocation")
    for a in assignments:
        table.add_row(role_label(a.role), engine_label(a.engine, a.model), a.via.value)
    console.print(table)

    console.print(Panel(
        f"{describe_agent_config(assignments)}\n"
        f"Timeout : {config.timeout_seconds}s · Mode : {config.default_mode.value}\n"
        f"Auto-trigger : {', '.join(config.auto_trigger_patterns) or '(aucun)'}",
        title="⚙️ Configuration",
    ))


def _run_server(repo_root: Path, host: str, port: int) -> None:
    """Lance le serveur FastAPI."""
    import uvicorn
    from tenth_man.server import create_app

    console.print(Panel(
        f"[bold green]API démarrée sur http://{host}:{port}[/]\n"
        f"Dépôt revu : {repo_root}",
        title="🔟 Tenth Man Server",
    ))
    app = create_app(repo_root)
    # log_config=None : uvicorn garde le handler Rich installé par setup_logging
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
