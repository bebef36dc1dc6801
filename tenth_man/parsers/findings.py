"""
Extraction des constats — Tenth Man.

Chaque rôle nomme ses listes de constats différemment. Chaque champ connu
est enregistré avec une forme (FindingsShape) ; chaque forme a exactement
un extracteur. Un champ absent ou de mauvais type est ignoré.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable


class FindingsShape(str, Enum):
    MIXED = "mixed"                          # chaînes ou objets {title|description}
    OBJECTS = "objects"                      # objets {title|description} uniquement
    PHASES = "phases"                        # objets {phase, title|scope}
    CRITICAL_FINDINGS = "critical_findings"  # {type: "critical", title, detail}
    RECOMMENDED_FINDINGS = "recommended_findings"  # {type: "recommendation", ...}


def _object_label(item: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return str(value)
    return json.dumps(item, ensure_ascii=False, sort_keys=True)


def _extract_mixed(items: list[Any]) -> list[str]:
    out: list[str] = []
    for item in items:
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, dict):
            out.append(_object_label(item, "title", "description"))
    return out


def _extract_objects(items: list[Any]) -> list[str]:
    return [_object_label(item, "title", "description") for item in items if isinstance(item, dict)]


def _extract_phases(items: list[Any]) -> list[str]:
    out: list[str] = []
    for item in items:
        if isinstance(item, dict):
            label = item.get("title") if item.get("title") is not None else item.get("scope")
            out.append(f"Phase {item.get('phase')}: {label}")
    return out


def _typed_findings(kind: str) -> Callable[[list[Any]], list[str]]:
    def extract(items: list[Any]) -> list[str]:
        return [
            _object_label(item, "title", "detail", "description")
            for item in items
            if isinstance(item, dict) and str(item.get("type", "")).lower() == kind
        ]
    return extract


EXTRACTORS: dict[FindingsShape, Callable[[list[Any]], list[str]]] = {
    FindingsShape.MIXED: _extract_mixed,
    FindingsShape.OBJECTS: _extract_objects,
    FindingsShape.PHASES: _extract_phases,
    FindingsShape.CRITICAL_FINDINGS: _typed_findings("critical"),
    FindingsShape.RECOMMENDED_FINDINGS: _typed_findings("recommendation"),
}

# (champ, forme), parcourus dans cet ordre
ISSUE_FIELDS: tuple[tuple[str, FindingsShape], ...] = (
    ("critical_issues", FindingsShape.MIXED),
    ("structural_issues", FindingsShape.OBJECTS),
    ("findings", FindingsShape.CRITICAL_FINDINGS),
)

RECOMMENDATION_FIELDS: tuple[tuple[str, FindingsShape], ...] = (
    ("recommendations", FindingsShape.MIXED),
    ("phasing_suggestion", FindingsShape.PHASES),
    ("findings", FindingsShape.RECOMMENDED_FINDINGS),
)


def extract_fields(
    payload: dict[str, Any] | None,
    fields: tuple[tuple[str, FindingsShape], ...],
) -> list[str]:
    """Aplatit les listes connues d'un payload en chaînes lisibles."""
    if not isinstance(payload, dict):
        return []
    out: list[str] = []
    for name, shape in fields:
        value = payload.get(name)
        if isinstance(value, list):
            out.extend(EXTRACTORS[shape](value))
    return out


def extract_issues(payload: dict[str, Any] | None) -> list[str]:
    return extract_fields(payload, ISSUE_FIELDS)


def extract_recommendations(payload: dict[str, Any] | None) -> list[str]:
    return extract_fields(payload, RECOMMENDATION_FIELDS)
