"""
Configuration centralisée — Tenth Man.

Trois couches, fusionnées dans un ordre fixe par `merge_config_layers` :
  1. overrides passés à l'appel (CLI, API)
  2. overrides persistés dans .tenth-man/config.json
  3. Settings (variables d'environnement TENTH_MAN_* / .env / défauts)
  4. détection automatique des CLI installées (agents disponibles uniquement)
"""

from __future__ import annotations

import fnmatch
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from tenth_man.integrations.detector import detect_agents
from tenth_man.models import EXTERNAL_ENGINES, AgentEngine, Mode

logger = logging.getLogger("tenth_man.config")

# ── Racine du projet ────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Charger .env ────────────────────────────
_env_path = PROJECT_ROOT / ".env"

STATE_DIR = ".tenth-man"
CONFIG_FILE = "config.json"

MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600


class Settings(BaseSettings):
    """Paramètres globaux chargés depuis les variables d'environnement."""

    # Panel
    timeout_seconds: int = Field(default=180, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS)
    default_mode: Mode = Field(default=Mode.STANDARD)
    auto_trigger_patterns: list[str] = Field(
        default_factory=lambda: ["**/auth/**", "**/migrations/**", "**/*.schema.*"]
    )
    available_agents: Optional[list[AgentEngine]] = Field(
        default=None, description="Désactive la détection si renseigné"
    )
    detect_timeout_seconds: float = Field(default=10.0)

    # Modèles
    codex_model: str = Field(default="gpt-5.3-codex")
    gemini_model: str = Field(default="gemini-3-pro-preview")
    claude_model: str = Field(default="opus")

    # Général
    log_level: str = Field(default="INFO")

    model_config = {
        "env_prefix": "TENTH_MAN_",
        "env_file": str(_env_path),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    # ── Helpers ──────────────────────────────

    def model_for(self, engine: AgentEngine) -> str:
        return {
            AgentEngine.CODEX: self.codex_model,
            AgentEngine.GEMINI: self.gemini_model,
            AgentEngine.CLAUDE: self.claude_model,
        }[engine]


def get_settings() -> Settings:
    """Retourne une instance Settings fraîche."""
    return Settings()


# ════════════════════════════════════════════
#  Overrides & configuration d'exécution
# ════════════════════════════════════════════

class ConfigOverrides(BaseModel):
    """Overrides optionnels (appel ou fichier persisté)."""
    available_agents: Optional[list[AgentEngine]] = None
    timeout_seconds: Optional[int] = Field(
        default=None, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS
    )
    auto_trigger_patterns: Optional[list[str]] = None
    default_mode: Optional[Mode] = None


class RuntimeConfig(BaseModel):
    """Configuration explicite d'un cycle de revue."""
    available_agents: frozenset[AgentEngine] = Field(default_factory=frozenset)
    timeout_seconds: int = Field(default=180, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS)
    auto_trigger_patterns: list[str] = Field(default_factory=list)
    default_mode: Mode = Mode.STANDARD
    repo_root: Path = Field(default_factory=Path.cwd)

    def matches_auto_trigger(self, paths: Iterable[str]) -> list[str]:
        """Retourne les chemins qui correspondent à un pattern de déclenchement."""
        matched: list[str] = []
        for path in paths:
            normalized = path.replace("\\", "/")
            # "**/x/**" doit aussi matcher un chemin relatif "x/..."
            candidates = (normalized, f"/{normalized}")
            if any(
                fnmatch.fnmatch(candidate, pattern)
                for pattern in self.auto_trigger_patterns
                for candidate in candidates
            ):
                matched.append(path)
        return matched


def config_path(repo_root: Path) -> Path:
    return Path(repo_root) / STATE_DIR / CONFIG_FILE


def load_repo_config(repo_root: Path) -> ConfigOverrides:
    """Charge .tenth-man/config.json ; un fichier invalide est ignoré."""
    path = config_path(repo_root)
    if not path.exists():
        return ConfigOverrides()
    try:
        return ConfigOverrides.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning(f"Config persistée ignorée ({path}) : {exc}")
        return ConfigOverrides()


def save_repo_config(repo_root: Path, overrides: ConfigOverrides) -> ConfigOverrides:
    """Fusionne les overrides avec la config persistée et réécrit le fichier."""
    existing = load_repo_config(repo_root)
    merged = existing.model_copy(update=overrides.model_dump(exclude_none=True))
    path = config_path(repo_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(merged.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8")
    return merged


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def merge_config_layers(
    repo_root: Path,
    overrides: ConfigOverrides | None,
    persisted: ConfigOverrides | None,
    settings: Settings,
    detected: Iterable[AgentEngine] = (),
) -> RuntimeConfig:
    """Fusion pure : appel > persisté > défaut > détecté."""
    call = overrides or ConfigOverrides()
    repo = persisted or ConfigOverrides()

    agents = _first(
        call.available_agents,
        repo.available_agents,
        settings.available_agents,
        list(detected),
    )

    return RuntimeConfig(
        available_agents=frozenset(a for a in agents if a in EXTERNAL_ENGINES),
        timeout_seconds=_first(call.timeout_seconds, repo.timeout_seconds, settings.timeout_seconds),
        auto_trigger_patterns=_first(
            call.auto_trigger_patterns, repo.auto_trigger_patterns, settings.auto_trigger_patterns
        ),
        default_mode=_first(call.default_mode, repo.default_mode, settings.default_mode),
        repo_root=Path(repo_root),
    )


def agents_pinned(*layers: ConfigOverrides | Settings | None) -> bool:
    return any(layer is not None and layer.available_agents is not None for layer in layers)


async def build_runtime_config(
    repo_root: Path,
    overrides: ConfigOverrides | None = None,
    settings: Settings | None = None,
    detected: Iterable[AgentEngine] | None = None,
) -> RuntimeConfig:
    """Construit la RuntimeConfig ; ne détecte les CLI que si aucune couche ne les fixe."""
    settings = settings or get_settings()
    persisted = load_repo_config(repo_root)

    if detected is None and not agents_pinned(overrides, persisted, settings):
        detected = await detect_agents(timeout=settings.detect_timeout_seconds)

    return merge_config_layers(repo_root, overrides, persisted, settings, detected or ())
