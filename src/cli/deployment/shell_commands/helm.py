"""Helm command abstractions.

This module provides commands for Helm release management used by the GRAS
deployment: release queries, install/uninstall, chart pulls and repository
registration.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult, HelmRelease

if TYPE_CHECKING:
    from .runner import CommandRunner


class HelmCommandError(Exception):
    """Raised when a Helm query cannot be completed."""

    def __init__(self, message: str, result: CommandResult | None = None):
        self.message = message
        self.result = result
        super().__init__(message)


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Release management (install, uninstall)
    - Status queries (list releases)
    - Chart and repository handling (pull, show, repo add/update)
    """

    def __init__(self, runner: CommandRunner, kube_context: str | None = None) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            kube_context: Optional kubeconfig context passed to every
                         cluster-facing command
        """
        self._runner = runner
        self._kube_context = kube_context

    def _with_context(self, cmd: list[str]) -> list[str]:
        if self._kube_context:
            cmd.extend(["--kube-context", self._kube_context])
        return cmd

    # =========================================================================
    # Release Management
    # =========================================================================

    def install(
        self,
        release_name: str,
        chart_path: Path | str,
        namespace: str,
        *,
        value_files: list[Path] | None = None,
        timeout: str = "10m",
        wait: bool = False,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Install a chart as a new Helm release.

        Args:
            release_name: Name for the Helm release
            chart_path: Chart directory, archive or repo/chart reference
            namespace: Kubernetes namespace for deployment
            value_files: Optional list of values.yaml files
            timeout: Maximum time to wait for the install
            wait: Whether to wait for resources to be ready
            on_output: Optional callback for real-time output streaming.
                      If provided, each line of output is passed to this function.

        Returns:
            CommandResult with install status

        Example:
            >>> helm.install(
            ...     "orders",
            ...     Path("/tmp/charts/gras-deploy"),
            ...     "shop",
            ...     value_files=[Path("/tmp/values.yaml")],
            ... )
        """
        cmd = [
            "helm",
            "install",
            release_name,
            str(chart_path),
            "--namespace",
            namespace,
        ]

        if wait:
            cmd.append("--wait")
        cmd.extend(["--timeout", timeout])

        for vf in value_files or []:
            cmd.extend(["-f", str(vf)])
        self._with_context(cmd)

        if on_output:
            return self._runner.run_streaming(cmd, on_output=on_output)
        return self._runner.run(cmd, capture_output=True)

    def uninstall(
        self,
        release_name: str,
        namespace: str,
        *,
        wait: bool = True,
    ) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace
            wait: Whether to wait for resources to be deleted

        Returns:
            CommandResult with uninstall status
        """
        cmd = ["helm", "uninstall", release_name, "-n", namespace]
        if wait:
            cmd.append("--wait")
        return self._runner.run(self._with_context(cmd))

    # =========================================================================
    # Status Queries
    # =========================================================================

    def list_releases(
        self,
        namespace: str | None = None,
        *,
        all_namespaces: bool = False,
    ) -> list[HelmRelease]:
        """List Helm releases in every state.

        Args:
            namespace: Kubernetes namespace to query
            all_namespaces: Query every namespace instead of one

        Returns:
            List of HelmRelease objects

        Raises:
            HelmCommandError: If helm fails or prints something that is not
                              a JSON release list
        """
        cmd = ["helm", "list", "--all", "-o", "json"]
        if all_namespaces:
            cmd.append("--all-namespaces")
        elif namespace:
            cmd.extend(["-n", namespace])

        result = self._runner.run(self._with_context(cmd))
        if not result.success:
            raise HelmCommandError(
                f"helm list failed: {result.stderr.strip() or result.stdout.strip()}",
                result,
            )
        if not result.stdout.strip():
            return []

        try:
            releases_data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise HelmCommandError(f"Unreadable helm list output: {e}", result) from e

        return [
            HelmRelease(
                name=r.get("name", ""),
                namespace=r.get("namespace", ""),
                status=r.get("status", ""),
                revision=str(r.get("revision", "")),
                chart=r.get("chart", ""),
            )
            for r in releases_data or []
        ]

    def find_release(
        self,
        release_name: str,
        namespace: str | None = None,
        *,
        all_namespaces: bool = False,
    ) -> HelmRelease | None:
        """Return the release with the given name, if one exists."""
        for release in self.list_releases(namespace, all_namespaces=all_namespaces):
            if release.name == release_name:
                return release
        return None

    # =========================================================================
    # Charts and Repositories
    # =========================================================================

    def pull(self, chart_ref: str, destination: Path) -> CommandResult:
        """Download and unpack a chart into a local directory.

        Args:
            chart_ref: Chart reference (e.g., "oci://registry/chart")
            destination: Directory the chart is written to

        Returns:
            CommandResult with pull status
        """
        cmd = ["helm", "pull", chart_ref, "--destination", str(destination), "--untar"]
        return self._runner.run(cmd)

    def show_chart(self, chart_path: Path) -> CommandResult:
        """Read the metadata of a local chart, which fails if it cannot be loaded."""
        return self._runner.run(["helm", "show", "chart", str(chart_path)])

    def repo_add(self, name: str, url: str, *, force_update: bool = True) -> CommandResult:
        """Register a chart repository."""
        cmd = ["helm", "repo", "add", name, url]
        if force_update:
            cmd.append("--force-update")
        return self._runner.run(cmd)

    def repo_update(self, name: str | None = None) -> CommandResult:
        """Refresh chart repository indexes."""
        cmd = ["helm", "repo", "update"]
        if name:
            cmd.append(name)
        return self._runner.run(cmd)
