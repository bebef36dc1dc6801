"""
Utilitaires divers — Tenth Man.
"""

from __future__ import annotations

from tenth_man.models import AgentEngine, Decision


def truncate(text: str, max_len: int = 500) -> str:
    """Garde les `max_len` premiers caractères."""
    return text[:max_len]


def humanize_decision(decision: Decision) -> str:
    """proceed_with_changes → PROCEED WITH CHANGES"""
    return decision.value.replace("_", " ").upper()


def format_seconds(duration_ms: int) -> str:
    return f"{duration_ms / 1000:.1f}s"


def engine_label(engine: AgentEngine, model: str = "") -> str:
    if engine == AgentEngine.CLAUDE:
        return f"Claude · {model}" if model else "Claude"
    label = engine.value.capitalize()
    return f"{label} · {model}" if model else label
