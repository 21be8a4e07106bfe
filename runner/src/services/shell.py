"""
Run external commands (git, docker compose, ...) and capture their output.
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from runner.src.core.errors import CommandError
from runner.src.models.step import CommandOutput

logger = logging.getLogger(__name__)

MAX_LOGGED_LINES = 200

def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(arg) for arg in command)

def _log_output(text: str, level: int):
    lines = text.rstrip().splitlines()
    if len(lines) > MAX_LOGGED_LINES:
        logger.log(level, f"... {len(lines) - MAX_LOGGED_LINES} lines omitted")
        lines = lines[-MAX_LOGGED_LINES:]
    for line in lines:
        logger.log(level, line)

class CommandExecutor:
    """
    Black-box command runner: ``execute(argv) -> CommandOutput``.
    A non-zero exit is returned, not raised; only a command that could not
    run to completion raises CommandError.
    """

    def __init__(self, timeout: int = 600, dry_run: bool = False):
        self.timeout = timeout
        self.dry_run = dry_run

    def execute(
        self,
        command: Sequence[str],
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> CommandOutput:
        command = list(command)
        timeout = timeout or self.timeout
        logger.info(f"$ {format_command(command)}")

        if self.dry_run:
            return CommandOutput(exit_code=0)

        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)

        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                env=full_env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {timeout}s")
            raise CommandError(command, None, stderr=f"timed out after {timeout}s")
        except OSError as e:
            # Executable missing or not runnable
            raise CommandError(command, 127, stderr=str(e))

        _log_output(completed.stdout, logging.INFO)
        _log_output(completed.stderr, logging.INFO if completed.returncode == 0 else logging.WARNING)

        return CommandOutput(
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
