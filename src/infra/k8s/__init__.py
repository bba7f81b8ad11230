"""Kubernetes infrastructure abstraction layer.

This module provides a clean abstraction over the Kubernetes operations the
GRAS deployment performs, backed by the kr8s library.

Example:
    from src.infra.k8s import get_k8s_controller_sync

    controller = get_k8s_controller_sync()
    if not controller.namespace_exists("my-namespace"):
        controller.create_namespace("my-namespace")
"""

from .controller import (
    CommandResult,
    CustomResource,
    KubernetesController,
    KubernetesControllerSync,
    KubernetesError,
    ResourceExistsError,
    ResourceNotFoundError,
    ResourceRef,
)
from .helpers import get_k8s_controller, get_k8s_controller_sync
from .kr8s_controller import Kr8sController
from .reconciler import CustomResourceReconciler, ReconcileOutcome, resource_ref
from .utils import run_sync

__all__ = [
    # Controller classes
    "KubernetesController",
    "KubernetesControllerSync",
    "Kr8sController",
    # Data classes
    "CommandResult",
    "CustomResource",
    "ResourceRef",
    # Errors
    "KubernetesError",
    "ResourceExistsError",
    "ResourceNotFoundError",
    # Reconciliation
    "CustomResourceReconciler",
    "ReconcileOutcome",
    "resource_ref",
    # Utilities
    "get_k8s_controller",
    "get_k8s_controller_sync",
    "run_sync",
]
