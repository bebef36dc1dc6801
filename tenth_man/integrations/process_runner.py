"""
Exécution de processus externes — Tenth Man.

Lance une CLI via asyncio, avec timeout wall-clock par appel et sortie
plafonnée. Ne lève jamais : chaque appel retourne un ProcessOutcome
(succès, timeout ou erreur étiquetée).
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional

from tenth_man.models import ProcessOutcome

logger = logging.getLogger("tenth_man.process")

# Plafond par flux (stdout, stderr)
MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024


class OutputLimitExceeded(Exception):
    """Un flux du process a dépassé le plafond autorisé."""


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def _read_capped(stream: asyncio.StreamReader, limit: int) -> bytes:
    buffer = bytearray()
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return bytes(buffer)
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise OutputLimitExceeded(f"output exceeded {limit} bytes")


async def run_process(
    command: list[str],
    timeout: float,
    cwd: Path | str | None = None,
    env: Optional[dict[str, str]] = None,
    max_output_bytes: int = MAX_OUTPUT_BYTES,
) -> ProcessOutcome:
    """Lance `command` et attend sa fin, ou le tue à l'expiration du timeout."""
    if not command:
        return ProcessOutcome(ok=False, error="missing command")

    run_env = os.environ.copy()
    if env:
        run_env.update({str(k): str(v) for k, v in env.items()})

    start = time.perf_counter()
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=run_env,
        )
    except (OSError, ValueError) as exc:
        # ValueError : octet nul dans un argument
        return ProcessOutcome(ok=False, error=str(exc), duration_ms=_elapsed_ms(start))

    try:
        stdout, stderr, _ = await asyncio.wait_for(
            asyncio.gather(
                _read_capped(proc.stdout, max_output_bytes),
                _read_capped(proc.stderr, max_output_bytes),
                proc.wait(),
            ),
            timeout=timeout,
        )
    except TimeoutError:
        await _kill(proc)
        logger.warning(f"{command[0]} : timeout après {timeout}s, process tué")
        return ProcessOutcome(ok=False, timed_out=True, error="timeout", duration_ms=_elapsed_ms(start))
    except OutputLimitExceeded as exc:
        await _kill(proc)
        logger.warning(f"{command[0]} : {exc}, process tué")
        return ProcessOutcome(ok=False, error=str(exc), duration_ms=_elapsed_ms(start))
    except OSError as exc:
        await _kill(proc)
        return ProcessOutcome(ok=False, error=str(exc), duration_ms=_elapsed_ms(start))

    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace").strip()
    ok = proc.returncode == 0
    return ProcessOutcome(
        ok=ok,
        stdout=out,
        stderr=err,
        returncode=proc.returncode,
        error=None if ok else (f"exit {proc.returncode}: {err[-300:]}" if err else f"exit {proc.returncode}"),
        duration_ms=_elapsed_ms(start),
    )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()
