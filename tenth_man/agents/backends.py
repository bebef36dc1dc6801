"""
Backends CLI — Tenth Man.

Codex (via npx) et Gemini, lancés en subprocess par l'invoker.
"""

from __future__ import annotations

from tenth_man.agents.base_agent import BaseBackend
from tenth_man.models import AgentEngine


class CodexBackend(BaseBackend):
    engine = AgentEngine.CODEX
    name = "Codex"

    def build_command(self, prompt: str, model: str) -> list[str]:
        return [
            "npx", "codex", "exec",
            "--model", model,
            "--model-reasoning-effort", "high",
            "-q", prompt,
        ]


class GeminiBackend(BaseBackend):
    engine = AgentEngine.GEMINI
    name = "Gemini"

    def build_command(self, prompt: str, model: str) -> list[str]:
        return [
            "gemini",
            "-p", prompt,
            "--model", model,
            "--output-format", "json",
            "--sandbox",
        ]


BACKENDS: dict[AgentEngine, type[BaseBackend]] = {
    AgentEngine.CODEX: CodexBackend,
    AgentEngine.GEMINI: GeminiBackend,
}


def get_backend(engine: AgentEngine) -> BaseBackend:
    """Instancie le backend d'un moteur externe (KeyError si non supporté)."""
    try:
        return BACKENDS[engine]()
    except KeyError:
        raise KeyError(f"Unsupported external engine: {engine.value}") from None
