"""
Logger structuré — Tenth Man.

Logging coloré (via Rich) sur stderr : stdout reste réservé aux sorties
JSON de la CLI, que l'agent hôte lit telles quelles.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from tenth_man.config import get_settings

# Loggers tiers ramenés à WARNING
_NOISY_LIBS = ("asyncio", "httpx", "uvicorn.access")

# Loggers tiers qui partagent le handler Rich (serveur lancé avec log_config=None)
_SHARED_LIBS = ("uvicorn", "uvicorn.error")

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure le logging une seule fois ; `level` prime sur TENTH_MAN_LOG_LEVEL."""
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or get_settings().log_level).upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter("%(name)s — %(message)s"))

    for name in ("tenth_man", *_SHARED_LIBS):
        target = logging.getLogger(name)
        target.setLevel(resolved)
        target.handlers.clear()
        target.addHandler(handler)

    for lib in _NOISY_LIBS:
        logging.getLogger(lib).setLevel(logging.WARNING)
