"""
Backend de base (abstrait) — Tenth Man.

Chaque CLI externe hérite de BaseBackend et décrit sa ligne de commande.
L'exécution elle-même est faite par l'invoker.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tenth_man.models import AgentAssignment, AgentEngine


class BaseBackend(ABC):
    """Classe abstraite pour les CLI d'agents externes."""

    engine: AgentEngine
    name: str = "BaseBackend"

    # Variables ajoutées à l'environnement du process
    env: dict[str, str] = {"CI": "true"}

    def __init__(self):
        self.logger = logging.getLogger(f"tenth_man.backend.{self.name}")

    @abstractmethod
    def build_command(self, prompt: str, model: str) -> list[str]:
        """Retourne argv complet pour soumettre `prompt` au modèle."""
        ...

    def _log_start(self, assignment: AgentAssignment) -> None:
        self.logger.info(f"[{self.name}] Démarrage — rôle {assignment.role.value} ({assignment.model})")

    def _log_done(self, assignment: AgentAssignment, duration_ms: int) -> None:
        self.logger.info(f"[{self.name}] Terminé — rôle {assignment.role.value} en {duration_ms} ms")

    def _log_failed(self, assignment: AgentAssignment, reason: str) -> None:
        self.logger.warning(f"[{self.name}] ÉCHEC — rôle {assignment.role.value} : {reason}")
