"""
Stockage d'audit — Tenth Man.

Arborescence gérée dans le dépôt revu :
  .tenth-man/
    config.json          overrides persistés
    index.json           historique (plus récent en premier)
    active/REVIEW.md     rapport en attente de décision
    active/result.json   résultat courant (pour `merge`)
    history/<ts>_<id>/   revues archivées (review.md, plan.md, outcome.json)
"""

from __future__ import annotations

import json
import logging
import secrets
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from tenth_man.config import STATE_DIR
from tenth_man.models import (
    AgentUsage,
    AuditEntry,
    Decision,
    ReviewResult,
    Severity,
)

logger = logging.getLogger("tenth_man.audit")

GITIGNORE_ENTRY = f"{STATE_DIR}/"
GITIGNORE_COMMENT = "# 10th Man Protocol audit files"

_entries_adapter = TypeAdapter(list[AuditEntry])


def state_dir(repo_root: Path) -> Path:
    return Path(repo_root) / STATE_DIR


def active_dir(repo_root: Path) -> Path:
    return state_dir(repo_root) / "active"


def history_dir(repo_root: Path) -> Path:
    return state_dir(repo_root) / "history"


def index_path(repo_root: Path) -> Path:
    return state_dir(repo_root) / "index.json"


def generate_audit_id() -> str:
    """Identifiant court (6 caractères hexadécimaux)."""
    return secrets.token_hex(3)


# ════════════════════════════════════════════
#  Bootstrap
# ════════════════════════════════════════════

def ensure_directories(repo_root: Path) -> None:
    for path in (state_dir(repo_root), active_dir(repo_root), history_dir(repo_root)):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(f"Impossible de créer {path} : {exc}")


def ensure_gitignore(repo_root: Path) -> None:
    """Ajoute .tenth-man/ au .gitignore (idempotent)."""
    path = Path(repo_root) / ".gitignore"
    try:
        if path.exists():
            content = path.read_text(encoding="utf-8")
            if GITIGNORE_ENTRY not in content:
                prefix = "" if content.endswith("\n") or not content else "\n"
                path.write_text(
                    f"{content}{prefix}\n{GITIGNORE_COMMENT}\n{GITIGNORE_ENTRY}\n", encoding="utf-8"
                )
        else:
            path.write_text(f"{GITIGNORE_COMMENT}\n{GITIGNORE_ENTRY}\n", encoding="utf-8")
    except OSError as exc:
        logger.warning(f"Impossible de mettre à jour .gitignore : {exc}")


# ════════════════════════════════════════════
#  Revue active
# ════════════════════════════════════════════

def write_review_file(repo_root: Path, content: str) -> Path:
    path = active_dir(repo_root) / "REVIEW.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def save_result(repo_root: Path, result: ReviewResult) -> Path:
    path = active_dir(repo_root) / "result.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    return path


def load_result(repo_root: Path) -> Optional[ReviewResult]:
    path = active_dir(repo_root) / "result.json"
    if not path.exists():
        return None
    try:
        return ReviewResult.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.error(f"Résultat actif illisible ({path}) : {exc}")
        return None


# ════════════════════════════════════════════
#  Historique
# ════════════════════════════════════════════

def archive_to_history(repo_root: Path, result: ReviewResult) -> Path:
    """Archive la revue active et ajoute une entrée à l'index."""
    now = datetime.now(UTC)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    target = history_dir(repo_root) / f"{stamp}_{result.audit_id}"
    target.mkdir(parents=True, exist_ok=True)

    active = active_dir(repo_root)
    for name, archived in (("REVIEW.md", "review.md"), ("PLAN.md", "plan.md")):
        source = active / name
        if source.exists():
            shutil.move(str(source), str(target / archived))
    (active / "result.json").unlink(missing_ok=True)

    outcome = {
        "audit_id": result.audit_id,
        "timestamp": now.isoformat(),
        "task": result.review_input.task_description if result.review_input else "",
        "severity": result.severity.value,
        "verdict": result.consensus.decision.value,
        "confidence": result.consensus.confidence,
        "critical_issues": result.consensus.critical_issues,
        "recommendations": result.consensus.recommendations,
        "agents_used": [
            {
                "role": a.role.value,
                "engine": a.engine.value,
                "model": a.model,
                "verdict": a.decision.value,
                "status": a.status.value,
            }
            for a in result.agents
        ],
        "duration_ms": result.duration_ms,
        "mode": result.mode.value,
    }
    (target / "outcome.json").write_text(json.dumps(outcome, indent=2), encoding="utf-8")

    _prepend_index(repo_root, AuditEntry(
        audit_id=result.audit_id,
        timestamp=now,
        task=outcome["task"],
        severity=result.severity,
        verdict=result.consensus.decision,
        agents_used=[AgentUsage(role=a.role, engine=a.engine, model=a.model) for a in result.agents],
        duration_ms=result.duration_ms,
        mode=result.mode,
    ))
    logger.info(f"📦 Revue {result.audit_id} archivée dans {target}")
    return target


def _load_index(repo_root: Path) -> list[AuditEntry]:
    path = index_path(repo_root)
    if not path.exists():
        return []
    try:
        return _entries_adapter.validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        logger.warning(f"Index d'historique illisible, ignoré : {exc}")
        return []


def _prepend_index(repo_root: Path, entry: AuditEntry) -> None:
    entries = [entry, *_load_index(repo_root)]
    path = index_path(repo_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_entries_adapter.dump_json(entries, indent=2))


def read_history(
    repo_root: Path,
    last_n: int = 5,
    severity: Severity | None = None,
    verdict: Decision | None = None,
) -> list[AuditEntry]:
    entries = _load_index(repo_root)
    if severity is not None:
        entries = [e for e in entries if e.severity == severity]
    if verdict is not None:
        entries = [e for e in entries if e.verdict == verdict]
    return entries[:last_n]
