"""Assistant passthrough.

Routes
------
POST /llm    Pipe ``input`` to the configured command, return its stdout

The command is split shell-style from ``MODELVIZ_LLM_COMMAND`` and run without
a shell.  ``~/.local/bin``, ``~/bin`` and ``/usr/local/bin`` are put in front
of ``PATH`` so user-installed tools are found when the server was started from
a minimal environment.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from modelviz.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


class LlmRequest(BaseModel):
    input: str = ""


class LlmResponse(BaseModel):
    response: str


def _command_env() -> dict[str, str]:
    home = Path.home()
    extra = [str(home / ".local" / "bin"), str(home / "bin"), "/usr/local/bin"]
    current = os.environ.get("PATH")
    path = os.pathsep.join(extra + ([current] if current else []))
    return {**os.environ, "PATH": path}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/llm", response_model=LlmResponse)
def llm_endpoint(body: LlmRequest):
    """Run the assistant command with *input* on stdin and return its reply."""
    if not body.input.strip():
        return _error("input is required", 422)

    argv = shlex.split(settings.llm_command)
    if not argv:
        return _error("LLM command is not configured", 500)

    try:
        completed = subprocess.run(
            argv,
            input=body.input,
            capture_output=True,
            text=True,
            timeout=settings.llm_timeout,
            env=_command_env(),
        )
    except FileNotFoundError:
        return _error(f"{argv[0]} not found in PATH", 500)
    except subprocess.TimeoutExpired:
        logger.warning("LLM command %r timed out after %ss", argv[0], settings.llm_timeout)
        return _error(f"LLM command timed out after {settings.llm_timeout:g}s", 500)

    if completed.returncode != 0:
        logger.warning("LLM command failed (exit %d): %s", completed.returncode, completed.stderr.strip())
        return _error(f"LLM command failed (exit {completed.returncode})", 500)
    return {"response": completed.stdout.strip()}
