"""Data types for shell command results.

Note: CommandResult is re-exported from src.infra.k8s.controller so kubectl
and Helm results share one type.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.infra.k8s.controller import CommandResult

__all__ = [
    "CommandResult",
    "HelmRelease",
]


@dataclass
class HelmRelease:
    """Information about a Helm release.

    Attributes:
        name: Release name
        namespace: Kubernetes namespace
        status: Release status (deployed, failed, pending-install, uninstalling)
        revision: Release revision number
        chart: Chart name and version (e.g., "gras-deploy-0.2.1")
    """

    name: str
    namespace: str
    status: str
    revision: str
    chart: str = ""

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"
