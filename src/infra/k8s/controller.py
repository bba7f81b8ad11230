"""Abstract Kubernetes controller interface.

Defines the contract for the Kubernetes operations the GRAS deployment
needs, so the pipeline can run against the kr8s backend or a test double.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .utils import run_sync

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass(frozen=True)
class ResourceRef:
    """Identity of a namespaced custom resource."""

    api_version: str
    kind: str
    name: str
    namespace: str


@dataclass
class CustomResource:
    """A custom resource as returned by the cluster."""

    ref: ResourceRef
    resource_version: str
    spec: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Errors
# =============================================================================


class KubernetesError(Exception):
    """Raised when a Kubernetes API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ResourceExistsError(KubernetesError):
    """Raised when creating an object that already exists (HTTP 409)."""


class ResourceNotFoundError(KubernetesError):
    """Raised when an object does not exist (HTTP 404)."""


# =============================================================================
# Abstract Controller
# =============================================================================


class KubernetesController(ABC):
    """Abstract base class for Kubernetes operations.

    All methods are async to match the kr8s API. Use
    `KubernetesControllerSync` to call them from the synchronous pipeline.

    Example:
        from src.infra.k8s import get_k8s_controller_sync

        controller = get_k8s_controller_sync()
        namespaces = controller.list_namespaces()
    """

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    @abstractmethod
    async def list_namespaces(self) -> list[str]:
        """List the names of all namespaces in the cluster.

        Raises:
            KubernetesError: If the namespaces cannot be listed
        """
        ...

    @abstractmethod
    async def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists.

        Args:
            namespace: Namespace to check

        Returns:
            True if the namespace exists, False otherwise

        Raises:
            KubernetesError: If the lookup fails for a reason other than 404
        """
        ...

    @abstractmethod
    async def create_namespace(self, namespace: str) -> None:
        """Create a namespace.

        Raises:
            ResourceExistsError: If the namespace already exists
            KubernetesError: On any other API failure
        """
        ...

    # =========================================================================
    # Secret Operations
    # =========================================================================

    @abstractmethod
    async def create_secret(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> None:
        """Create an Opaque secret from plain-text values.

        Args:
            name: Secret name
            namespace: Target namespace
            data: Plain-text key/value pairs (encoded by the implementation)

        Raises:
            ResourceExistsError: If the secret already exists
            KubernetesError: On any other API failure
        """
        ...

    @abstractmethod
    async def update_secret(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> None:
        """Replace the data of an existing secret.

        Raises:
            ResourceNotFoundError: If the secret does not exist
            KubernetesError: On any other API failure
        """
        ...

    # =========================================================================
    # Custom Resource Operations
    # =========================================================================

    @abstractmethod
    async def create_custom_resource(self, manifest: dict[str, Any]) -> None:
        """Create a namespaced custom resource from a full manifest.

        Raises:
            ResourceExistsError: If an object with the same name exists
            KubernetesError: On any other API failure
        """
        ...

    @abstractmethod
    async def get_custom_resource(self, ref: ResourceRef) -> CustomResource:
        """Fetch a custom resource.

        Raises:
            ResourceNotFoundError: If the resource does not exist
            KubernetesError: On any other API failure
        """
        ...

    @abstractmethod
    async def update_custom_resource(self, manifest: dict[str, Any]) -> None:
        """Update a custom resource.

        The manifest must carry `metadata.resourceVersion`; the cluster
        rejects the write if the stored object has moved on since.

        Raises:
            KubernetesError: On any API failure, including version conflicts
        """
        ...

    # =========================================================================
    # Manifests
    # =========================================================================

    @abstractmethod
    async def apply_manifest(self, source: str) -> CommandResult:
        """Apply a manifest from a file path or URL.

        Args:
            source: Path or URL accepted by `kubectl apply -f`

        Returns:
            CommandResult with apply status
        """
        ...


class KubernetesControllerSync:
    """Blocking facade over a `KubernetesController`.

    Every call suspends until the remote call returns, which is the
    execution model of the deployment pipeline.
    """

    def __init__(self, controller: KubernetesController) -> None:
        self._controller = controller

    def list_namespaces(self) -> list[str]:
        return run_sync(self._controller.list_namespaces())

    def namespace_exists(self, namespace: str) -> bool:
        return run_sync(self._controller.namespace_exists(namespace))

    def create_namespace(self, namespace: str) -> None:
        run_sync(self._controller.create_namespace(namespace))

    def create_secret(self, name: str, namespace: str, data: dict[str, str]) -> None:
        run_sync(self._controller.create_secret(name, namespace, data))

    def update_secret(self, name: str, namespace: str, data: dict[str, str]) -> None:
        run_sync(self._controller.update_secret(name, namespace, data))

    def create_custom_resource(self, manifest: dict[str, Any]) -> None:
        run_sync(self._controller.create_custom_resource(manifest))

    def get_custom_resource(self, ref: ResourceRef) -> CustomResource:
        return run_sync(self._controller.get_custom_resource(ref))

    def update_custom_resource(self, manifest: dict[str, Any]) -> None:
        run_sync(self._controller.update_custom_resource(manifest))

    def apply_manifest(self, source: str) -> CommandResult:
        return run_sync(self._controller.apply_manifest(source))
