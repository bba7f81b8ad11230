"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
the Helm command module.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


def _not_found(cmd: Sequence[str]) -> CommandResult:
    logger.debug(f"Executable not found: {cmd[0]}")
    return CommandResult(
        success=False, stderr=f"{cmd[0]}: executable not found on PATH", returncode=127
    )


class CommandRunner:
    """Low-level command executor with consistent result handling.

    All specialized command modules use this runner for actual command
    execution, which also makes them easy to drive from tests with a mock.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            cwd: Working directory for commands (defaults to the process cwd)
        """
        self.cwd = cwd

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
    ) -> CommandResult:
        """Execute a shell command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to the runner's cwd)
            capture_output: Whether to capture stdout/stderr

        Returns:
            CommandResult with success status, output, and return code
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.cwd,
                capture_output=capture_output,
                text=True,
            )
        except FileNotFoundError:
            return _not_found(cmd)
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Execute a shell command with real-time output streaming.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to the runner's cwd)
            on_output: Callback function called with each line of output.
                      If None, output is collected but not streamed.

        Returns:
            CommandResult with success status, collected output, and return code
        """
        logger.debug(f"Running (streaming): {' '.join(cmd)}")
        env = os.environ.copy()
        env["PYTHONUNBUFFERED"] = "1"

        try:
            process = subprocess.Popen(
                list(cmd),
                cwd=cwd or self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,  # Merge stderr into stdout
                text=True,
                bufsize=0,
                env=env,
            )
        except FileNotFoundError:
            return _not_found(cmd)

        stdout_lines: list[str] = []

        if process.stdout:
            for line in iter(process.stdout.readline, ""):
                line = line.rstrip("\n")
                if line:
                    stdout_lines.append(line)
                    if on_output:
                        on_output(line)

        process.wait()

        return CommandResult(
            success=process.returncode == 0,
            stdout="\n".join(stdout_lines),
            stderr="",  # stderr is merged into stdout
            returncode=process.returncode or 0,
        )
