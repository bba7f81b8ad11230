"""Shell command abstractions for Helm operations.

Usage:
    from src.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(kube_context="staging")
    for release in commands.helm.list_releases("shop"):
        print(release.name, release.status)
"""

from pathlib import Path

from .helm import HelmCommandError, HelmCommands
from .runner import CommandRunner
from .types import CommandResult, HelmRelease


class ShellCommands:
    """Unified interface for shell command operations.

    Attributes:
        helm: Helm-related commands
    """

    def __init__(
        self, cwd: Path | None = None, kube_context: str | None = None
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            cwd: Working directory for commands (defaults to the process cwd)
            kube_context: Optional kubeconfig context for cluster-facing commands
        """
        runner = CommandRunner(cwd)
        self.helm = HelmCommands(runner, kube_context=kube_context)


__all__ = [
    "ShellCommands",
    "CommandResult",
    "HelmRelease",
    "HelmCommandError",
    "HelmCommands",
    "CommandRunner",
]
