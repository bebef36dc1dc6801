"""
Normaliseur de réponses d'agents — Tenth Man.

Transforme la sortie texte d'une CLI en payload structuré, dans cet ordre :
  1. JSON complet (après retrait d'une clôture ``` éventuelle)
  2. premier objet {...} équilibré trouvé dans le texte
  3. payload de repli embarquant le texte brut tronqué
Ne lève jamais.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from tenth_man.models import AgentRole, Decision, role_label
from tenth_man.utils.helpers import truncate

DEFAULT_DECISION = Decision.PROCEED_WITH_CHANGES
DEFAULT_CONFIDENCE = 0.5
PARSE_FALLBACK_CONFIDENCE = 0.4
RAW_EXCERPT_CHARS = 500

# Clés d'enveloppe des CLI (gemini --output-format json, claude -p --output-format json)
_ENVELOPE_KEYS = ("response", "result")
_DECISION_KEYS = ("verdict", "decision")

_DECODER = json.JSONDecoder()


class ResponseParser:
    """Parse la sortie brute d'un agent avec récupération au mieux."""

    _FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)

    @classmethod
    def parse(cls, output: str, role: AgentRole, _depth: int = 0) -> dict[str, Any]:
        text = output if isinstance(output, str) else str(output)
        cleaned = cls.strip_fences(text)

        payload = cls._loads_object(cleaned)
        if payload is None:
            candidate = cls.find_balanced_object(cleaned)
            if candidate is not None:
                payload = cls._loads_object(candidate)

        if payload is None:
            return cls.fallback_payload(text, role)

        inner = cls._unwrap_envelope(payload)
        if inner is not None and _depth < 2:
            return cls.parse(inner, role, _depth + 1)
        return payload

    # ── Étape 1 ────────────────────────────

    @classmethod
    def strip_fences(cls, text: str) -> str:
        cleaned = text.strip()
        cleaned = cls._FENCE_OPEN_RE.sub("", cleaned, count=1)
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        return cleaned.strip()

    @staticmethod
    def _loads_object(text: str) -> dict[str, Any] | None:
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError, RecursionError):
            return None
        return data if isinstance(data, dict) else None

    # ── Étape 2 ────────────────────────────

    @staticmethod
    def find_balanced_object(text: str) -> str | None:
        """Premier objet JSON valide commençant à une accolade du texte."""
        start = text.find("{")
        while start != -1:
            # raw_decode échoue dès le premier caractère invalide
            try:
                data, end = _DECODER.raw_decode(text, start)
            except (json.JSONDecodeError, ValueError, RecursionError):
                data = None
            if isinstance(data, dict):
                return text[start:end]
            start = text.find("{", start + 1)
        return None

    # ── Étape 3 ────────────────────────────

    @staticmethod
    def fallback_payload(output: str, role: AgentRole) -> dict[str, Any]:
        return {
            "verdict": DEFAULT_DECISION.value,
            "confidence": PARSE_FALLBACK_CONFIDENCE,
            "reasoning": (
                f"[{role_label(role)}] Raw output (could not parse as JSON): "
                f"{truncate(output, RAW_EXCERPT_CHARS)}"
            ),
            "critical_issues": [],
            "recommendations": [],
        }

    @staticmethod
    def _unwrap_envelope(payload: dict[str, Any]) -> str | None:
        if any(key in payload for key in _DECISION_KEYS):
            return None
        for key in _ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None


# ════════════════════════════════════════════
#  Extraction décision / confiance
# ════════════════════════════════════════════

def extract_decision(payload: dict[str, Any] | None) -> Decision:
    if not isinstance(payload, dict):
        return DEFAULT_DECISION
    for key in _DECISION_KEYS:
        value = payload.get(key)
        if isinstance(value, str):
            try:
                return Decision(value.strip().lower())
            except ValueError:
                continue
    return DEFAULT_DECISION


def extract_confidence(payload: dict[str, Any] | None) -> float:
    if not isinstance(payload, dict):
        return DEFAULT_CONFIDENCE
    value = payload.get("confidence")
    # bool est un int en Python : exclu explicitement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    try:
        confidence = float(value)
    except OverflowError:
        return DEFAULT_CONFIDENCE
    if not math.isfinite(confidence):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def parse_agent_output(output: str, role: AgentRole) -> dict[str, Any]:
    return ResponseParser.parse(output, role)
