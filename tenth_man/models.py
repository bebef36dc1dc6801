"""
Modèles de données — Tenth Man.

Tous les objets échangés entre le resolver, l'invoker, le normaliseur,
le moteur de consensus et les collaborateurs (rapport, CLI, API)
sont définis ici pour garantir typage et sérialisation cohérents.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ════════════════════════════════════════════
#  Enums
# ════════════════════════════════════════════

class Decision(str, Enum):
    PROCEED = "proceed"
    PROCEED_WITH_CHANGES = "proceed_with_changes"
    BLOCK = "block"


class Severity(str, Enum):
    HIGH = "high"
    CRITICAL = "critical"
    BLOCKER = "blocker"


class Mode(str, Enum):
    AUTO = "auto"
    STANDARD = "standard"


class AgentEngine(str, Enum):
    CODEX = "codex"
    GEMINI = "gemini"
    CLAUDE = "claude"


class AgentRole(str, Enum):
    """Rôles contradicteurs, dans l'ordre de priorité d'affectation."""
    DEVILS_ADVOCATE = "devils_advocate"
    ARCHITECTURE_CRITIC = "architecture_critic"
    PRAGMATIST = "pragmatist"


class InvocationMode(str, Enum):
    SUBPROCESS = "subprocess"            # CLI externe lancée par le core
    SUBAGENT_PROMPT = "subagent_prompt"  # déléguée à l'hôte


class AgentStatus(str, Enum):
    COMPLETED = "completed"
    TIMEOUT = "timeout"
    ERROR = "error"


class ReviewStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"


# Rôles dans l'ordre de priorité (le premier reçoit un backend externe en premier)
ROLE_ORDER: tuple[AgentRole, ...] = (
    AgentRole.DEVILS_ADVOCATE,
    AgentRole.ARCHITECTURE_CRITIC,
    AgentRole.PRAGMATIST,
)

# Moteurs externes, dans l'ordre de priorité
EXTERNAL_ENGINES: tuple[AgentEngine, ...] = (AgentEngine.CODEX, AgentEngine.GEMINI)

ROLE_LABELS: dict[AgentRole, tuple[str, str]] = {
    AgentRole.DEVILS_ADVOCATE: ("🔴", "Devil's Advocate"),
    AgentRole.ARCHITECTURE_CRITIC: ("🟡", "Architecture Critic"),
    AgentRole.PRAGMATIST: ("🟢", "Pragmatist"),
}


def role_label(role: AgentRole) -> str:
    return ROLE_LABELS[role][1]


# ════════════════════════════════════════════
#  Entrée de revue
# ════════════════════════════════════════════

class ReviewInput(BaseModel):
    """Changement proposé soumis au panel."""
    task_description: str = Field(..., description="Ce que l'agent principal s'apprête à faire")
    proposed_changes: str = Field(..., description="Diff, plan ou description du changement")
    affected_files: list[str] = Field(default_factory=list)
    severity: Severity = Severity.HIGH
    context_files: Optional[list[str]] = None
    mode: Optional[Mode] = None


# ════════════════════════════════════════════
#  Affectation & verdicts
# ════════════════════════════════════════════

class AgentAssignment(BaseModel):
    """Rôle → backend, créé une fois par cycle par le resolver."""
    model_config = ConfigDict(frozen=True)

    role: AgentRole
    engine: AgentEngine
    model: str
    via: InvocationMode


class AgentVerdict(BaseModel):
    """Résultat normalisé d'un rôle. Jamais modifié après création."""
    model_config = ConfigDict(frozen=True)

    role: AgentRole
    engine: AgentEngine
    model: str = ""
    decision: Decision = Decision.PROCEED_WITH_CHANGES
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    raw_output: Optional[dict[str, Any]] = None
    duration_ms: int = 0
    status: AgentStatus = AgentStatus.COMPLETED
    error: Optional[str] = None


class SubagentInstruction(BaseModel):
    """Verdict pas encore produit : l'hôte doit lancer ce sous-agent."""
    model_config = ConfigDict(frozen=True)

    role: AgentRole
    engine: AgentEngine = AgentEngine.CLAUDE
    model: str
    prompt: str
    tools: list[str] = Field(default_factory=list)


class ProcessOutcome(BaseModel):
    """Résultat explicite d'un appel de process : succès ou échec étiqueté."""
    ok: bool
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    timed_out: bool = False
    error: Optional[str] = None
    duration_ms: int = 0


class InvocationBatch(BaseModel):
    verdicts: list[AgentVerdict] = Field(default_factory=list)
    subagent_prompts: list[SubagentInstruction] = Field(default_factory=list)


# ════════════════════════════════════════════
#  Consensus
# ════════════════════════════════════════════

class Consensus(BaseModel):
    decision: Decision
    confidence: float = Field(ge=0.0, le=1.0)
    critical_issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


# ════════════════════════════════════════════
#  Résultat d'un cycle + historique
# ════════════════════════════════════════════

class ReviewResult(BaseModel):
    """Sortie complète d'un cycle de revue, remise à l'appelant."""
    audit_id: str
    status: ReviewStatus = ReviewStatus.COMPLETED
    mode: Mode = Mode.STANDARD
    severity: Severity = Severity.HIGH
    duration_ms: int = 0
    agents: list[AgentVerdict] = Field(default_factory=list)
    consensus: Consensus
    agent_config: str = ""
    review_file: Optional[str] = None
    subagent_prompts: list[SubagentInstruction] = Field(default_factory=list)
    summary_line: str = ""
    instruction_to_host: str = ""
    review_input: Optional[ReviewInput] = None


class AgentUsage(BaseModel):
    role: AgentRole
    engine: AgentEngine
    model: str = ""


class AuditEntry(BaseModel):
    """Ligne de l'index d'historique (.tenth-man/index.json)."""
    audit_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    task: str = ""
    severity: Severity = Severity.HIGH
    verdict: Decision = Decision.PROCEED_WITH_CHANGES
    agents_used: list[AgentUsage] = Field(default_factory=list)
    duration_ms: int = 0
    mode: Mode = Mode.STANDARD
