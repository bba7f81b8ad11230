"""Internal database provisioning.

An internal GRAS database is a KubeBlocks MySQL `Cluster` named after the
release. The KubeBlocks operator is installed first when the cluster does
not already run a healthy release of it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]
from loguru import logger

from src.gras.errors import ProvisioningError
from src.infra.constants import DEFAULT_CONSTANTS, GrasConstants, GrasPaths
from src.infra.k8s import CustomResourceReconciler, KubernetesError, ReconcileOutcome

from ..shell_commands import HelmCommandError

if TYPE_CHECKING:
    from src.cli.shared.console import CLIConsole
    from src.gras.config import GrasConfig
    from src.infra.k8s import KubernetesControllerSync

    from ..shell_commands import ShellCommands


class KubeBlocksInstaller:
    """Installs the KubeBlocks operator when it is missing.

    Steps:
    1. Skip if a healthy `kubeblocks` release exists in any namespace
    2. Uninstall a failed one
    3. Create the `kb-system` namespace
    4. Apply the KubeBlocks CRDs
    5. Add the KubeBlocks Helm repository
    6. Install the chart and wait for it
    """

    def __init__(
        self,
        commands: ShellCommands,
        controller: KubernetesControllerSync,
        console: CLIConsole,
        constants: GrasConstants | None = None,
    ) -> None:
        self.commands = commands
        self.controller = controller
        self.console = console
        self.constants = constants or DEFAULT_CONSTANTS

    def _fail(self, step: str, details: str) -> ProvisioningError:
        return ProvisioningError(f"KubeBlocks installation failed: {step}", details=details)

    def ensure_installed(self) -> bool:
        """Install KubeBlocks unless a healthy release is present.

        Returns:
            True if an install was performed

        Raises:
            ProvisioningError: If any installation step fails
        """
        c = self.constants
        helm = self.commands.helm

        try:
            existing = helm.find_release(c.KUBEBLOCKS_RELEASE_NAME, all_namespaces=True)
        except HelmCommandError as e:
            raise self._fail("could not list Helm releases", e.message) from e

        if existing and not existing.is_failed:
            logger.info(
                f"KubeBlocks release found in {existing.namespace} ({existing.status})"
            )
            return False

        if existing:
            self.console.warn(
                f"KubeBlocks release in {existing.namespace} has failed, reinstalling"
            )
            result = helm.uninstall(existing.name, existing.namespace)
            if not result.success:
                raise self._fail("could not remove the failed release", result.stderr)

        self.console.info("Installing KubeBlocks on the cluster...")
        try:
            if not self.controller.namespace_exists(c.KUBEBLOCKS_NAMESPACE):
                self.controller.create_namespace(c.KUBEBLOCKS_NAMESPACE)
        except KubernetesError as e:
            raise self._fail(f"could not create namespace {c.KUBEBLOCKS_NAMESPACE}", e.message) from e

        result = self.controller.apply_manifest(c.KUBEBLOCKS_CRDS_URL)
        if not result.success:
            raise self._fail("could not apply CRDs", result.stderr or result.stdout)

        result = helm.repo_add(c.KUBEBLOCKS_REPO_NAME, c.KUBEBLOCKS_REPO_URL)
        if not result.success:
            raise self._fail("could not add the Helm repository", result.stderr)
        helm.repo_update(c.KUBEBLOCKS_REPO_NAME)

        result = helm.install(
            c.KUBEBLOCKS_RELEASE_NAME,
            c.KUBEBLOCKS_CHART,
            c.KUBEBLOCKS_NAMESPACE,
            wait=True,
            timeout=c.KUBEBLOCKS_TIMEOUT,
            on_output=self.console.stream,
        )
        if not result.success:
            raise self._fail("helm install failed", result.stderr or result.stdout)

        self.console.ok("KubeBlocks installed")
        return True


def load_cluster_manifest(path: Path, name: str, namespace: str) -> dict[str, Any]:
    """Load the cluster manifest and stamp the release name and namespace on it.

    Raises:
        ProvisioningError: If the file is missing or not a YAML mapping
    """
    try:
        manifest = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ProvisioningError(
            f"Failed to read database cluster manifest {path}", details=str(e)
        ) from e
    if not isinstance(manifest, dict):
        raise ProvisioningError(f"Database cluster manifest {path} is not a mapping")

    metadata = manifest.setdefault("metadata", {})
    metadata["name"] = name
    metadata["namespace"] = namespace
    return manifest


class InternalDatabaseProvisioner:
    """Creates or updates the database cluster of an internal GRAS database.

    Callable with a `GrasConfig` so it can be handed to the assembly
    pipeline as its database hook.
    """

    def __init__(
        self,
        controller: KubernetesControllerSync,
        installer: KubeBlocksInstaller,
        console: CLIConsole,
        paths: GrasPaths | None = None,
    ) -> None:
        self.controller = controller
        self.installer = installer
        self.console = console
        self.paths = paths or GrasPaths()
        self.reconciler = CustomResourceReconciler(controller)

    def __call__(self, config: GrasConfig) -> ReconcileOutcome:
        self.console.info("Creating internal DB...")
        self.installer.ensure_installed()

        manifest = load_cluster_manifest(
            self.paths.cluster_manifest, config.name, config.namespace
        )
        try:
            outcome = self.reconciler.reconcile(manifest)
        except KubernetesError as e:
            raise ProvisioningError(
                f"Failed to reconcile database cluster {config.namespace}/{config.name}",
                details=e.message,
            ) from e

        self.console.ok(f"Internal DB cluster {config.name} {outcome.value}")
        return outcome
