"""
Fixtures pytest — Tenth Man.
"""

from pathlib import Path

import pytest

from tenth_man.config import RuntimeConfig, Settings
from tenth_man.models import (
    AgentAssignment,
    AgentEngine,
    AgentRole,
    AgentStatus,
    AgentVerdict,
    Decision,
    InvocationMode,
    Mode,
    ProcessOutcome,
    ReviewInput,
    Severity,
)


@pytest.fixture
def settings() -> Settings:
    """Settings de test, indépendantes de l'environnement."""
    return Settings(
        _env_file=None,
        timeout_seconds=180,
        default_mode=Mode.STANDARD,
        available_agents=None,
        codex_model="gpt-5.3-codex",
        gemini_model="gemini-3-pro-preview",
        claude_model="opus",
    )


@pytest.fixture
def sample_review_input() -> ReviewInput:
    """Changement proposé de test."""
    return ReviewInput(
        task_description="Ajout d'un refresh token sur le login",
        proposed_changes=(
            "--- a/src/auth/login.py\n"
            "+++ b/src/auth/login.py\n"
            "@@ -10,3 +10,8 @@\n"
            "+def refresh(token):\n"
            "+    return issue_token(decode(token).user_id)\n"
        ),
        affected_files=["src/auth/login.py", "src/auth/tokens.py"],
        severity=Severity.CRITICAL,
        context_files=["docs/auth.md"],
    )


@pytest.fixture
def runtime_config(tmp_path: Path) -> RuntimeConfig:
    """Config d'exécution pointant vers un dépôt temporaire."""
    return RuntimeConfig(
        available_agents=frozenset(),
        timeout_seconds=60,
        auto_trigger_patterns=["**/auth/**", "**/migrations/**", "**/*.schema.*"],
        default_mode=Mode.STANDARD,
        repo_root=tmp_path,
    )


@pytest.fixture
def codex_assignment() -> AgentAssignment:
    return AgentAssignment(
        role=AgentRole.DEVILS_ADVOCATE,
        engine=AgentEngine.CODEX,
        model="gpt-5.3-codex",
        via=InvocationMode.SUBPROCESS,
    )


@pytest.fixture
def gemini_assignment() -> AgentAssignment:
    return AgentAssignment(
        role=AgentRole.ARCHITECTURE_CRITIC,
        engine=AgentEngine.GEMINI,
        model="gemini-3-pro-preview",
        via=InvocationMode.SUBPROCESS,
    )


@pytest.fixture
def make_verdict():
    """Fabrique de verdicts de test."""
    def _make(
        role: AgentRole = AgentRole.DEVILS_ADVOCATE,
        decision: Decision = Decision.PROCEED,
        confidence: float = 0.8,
        status: AgentStatus = AgentStatus.COMPLETED,
        raw_output: dict | None = None,
        engine: AgentEngine = AgentEngine.CODEX,
    ) -> AgentVerdict:
        return AgentVerdict(
            role=role,
            engine=engine,
            model="test-model",
            decision=decision,
            confidence=confidence,
            raw_output=raw_output,
            status=status,
            error=None if status == AgentStatus.COMPLETED else "boom",
        )
    return _make


@pytest.fixture
def ok_outcome():
    """Fabrique de ProcessOutcome réussis."""
    def _make(stdout: str, duration_ms: int = 1200) -> ProcessOutcome:
        return ProcessOutcome(ok=True, stdout=stdout, returncode=0, duration_ms=duration_ms)
    return _make


@pytest.fixture
def da_payload() -> dict:
    """Réponse type du Devil's Advocate."""
    return {
        "verdict": "block",
        "confidence": 0.9,
        "reasoning": "Le refresh token n'est jamais révoqué.",
        "critical_issues": ["Refresh token never revoked", {"title": "No rate limit on /refresh"}],
        "recommendations": ["Add a token blacklist"],
    }
