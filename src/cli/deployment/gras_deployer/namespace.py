"""Namespace and credentials secret provisioning."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from src.gras.errors import InputError, ProvisioningError
from src.infra.k8s import KubernetesError, ResourceExistsError

if TYPE_CHECKING:
    from src.cli.shared.console import CLIConsole
    from src.gras.config import GrasConfig
    from src.gras.prompts import Prompter
    from src.infra.k8s import KubernetesControllerSync

CHOOSE_EXISTING = "Choose from existing namespaces"
CREATE_NEW = "Create new namespace"


class NamespaceProvisioner:
    """Resolves the target namespace and writes the objects it must hold.

    Handles:
    - Interactive namespace selection when none was given
    - Get-or-create of the namespace
    - Create-or-update of the `<release>-conn-credential` secret
    """

    def __init__(
        self,
        controller: KubernetesControllerSync,
        prompter: Prompter,
        console: CLIConsole,
    ) -> None:
        """Initialize the provisioner.

        Args:
            controller: Kubernetes controller
            prompter: Prompts for the namespace choice
            console: Console for user-facing output
        """
        self.controller = controller
        self.prompter = prompter
        self.console = console

    def resolve_namespace(self, namespace: str | None) -> str:
        """Return the given namespace, or ask the user to pick or name one.

        Listing namespaces is the only cluster call made here.

        Raises:
            InputError: If the prompt is cancelled
            ProvisioningError: If namespaces cannot be listed
        """
        if namespace:
            return namespace

        option = self.prompter.choose(
            "Please select an option", [CHOOSE_EXISTING, CREATE_NEW]
        )
        if option == CREATE_NEW:
            return self.prompter.ask_non_empty(
                "Enter new namespace name", "Namespace name cannot be empty"
            )

        try:
            namespaces = self.controller.list_namespaces()
        except KubernetesError as e:
            raise ProvisioningError("Failed to list namespaces", details=e.message) from e
        if not namespaces:
            raise InputError(
                "No namespaces found in the cluster",
                details="Run again and choose to create a new namespace.",
            )
        return self.prompter.choose("Select namespace", sorted(namespaces))

    def ensure_namespace(self, namespace: str) -> bool:
        """Get-or-create the namespace.

        Returns:
            True if the namespace was created by this call

        Raises:
            ProvisioningError: If the lookup or creation fails
        """
        try:
            if self.controller.namespace_exists(namespace):
                logger.debug(f"Namespace {namespace} already exists")
                return False
            self.controller.create_namespace(namespace)
        except ResourceExistsError:
            # Created concurrently between the lookup and the create
            return False
        except KubernetesError as e:
            raise ProvisioningError(
                f"Failed to prepare namespace {namespace}", details=e.message
            ) from e
        self.console.ok(f"Created namespace: {namespace}")
        return True

    def ensure_credentials_secret(self, config: GrasConfig) -> None:
        """Create the external database credentials secret, or update it in place.

        Internal databases get their secret from the database operator, so
        only external mode writes one.

        Raises:
            ProvisioningError: If the secret cannot be created or updated
        """
        if not config.is_external_db or config.datasource is None:
            return

        name = config.credential_secret_name
        data = config.datasource.secret_data()
        self.console.info("Creating external db secret using collected datasource info...")
        try:
            try:
                self.controller.create_secret(name, config.namespace, data)
            except ResourceExistsError:
                logger.info(f"Secret {config.namespace}/{name} exists, updating it")
                self.controller.update_secret(name, config.namespace, data)
        except KubernetesError as e:
            raise ProvisioningError(
                f"Failed to write external db secret {name}", details=e.message
            ) from e
        self.console.ok(f"External db secret {name} is ready")
