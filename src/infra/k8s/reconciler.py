"""Create-or-update reconciliation for namespaced custom resources.

Used for the KubeBlocks `Cluster` that backs an internal GRAS database.
The transition is explicit:

    Create --ok--> Created
    Create --ResourceExistsError--> Fetch version --> Update --> Updated

Any other failure propagates. A version conflict on update is not retried;
it surfaces as a `KubernetesError` from the update call.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from loguru import logger

from .controller import KubernetesControllerSync, ResourceExistsError, ResourceRef


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


def resource_ref(manifest: dict[str, Any]) -> ResourceRef:
    metadata = manifest.get("metadata", {})
    return ResourceRef(
        api_version=manifest["apiVersion"],
        kind=manifest["kind"],
        name=metadata["name"],
        namespace=metadata["namespace"],
    )


class CustomResourceReconciler:
    """Idempotently writes a custom resource manifest."""

    def __init__(self, controller: KubernetesControllerSync) -> None:
        self.controller = controller

    def reconcile(self, manifest: dict[str, Any]) -> ReconcileOutcome:
        """Create the resource, or update it if it already exists.

        Args:
            manifest: Full manifest including metadata.name and metadata.namespace

        Returns:
            Which terminal state was reached

        Raises:
            KubernetesError: If create fails for a reason other than
                             "already exists", or if fetch/update fails
        """
        ref = resource_ref(manifest)
        try:
            self.controller.create_custom_resource(manifest)
        except ResourceExistsError:
            logger.info(f"{ref.kind} {ref.namespace}/{ref.name} already exists, updating it")
        else:
            logger.info(f"{ref.kind} {ref.namespace}/{ref.name} created")
            return ReconcileOutcome.CREATED

        existing = self.controller.get_custom_resource(ref)
        desired = copy.deepcopy(manifest)
        desired.setdefault("metadata", {})["resourceVersion"] = existing.resource_version
        self.controller.update_custom_resource(desired)
        logger.info(f"{ref.kind} {ref.namespace}/{ref.name} updated")
        return ReconcileOutcome.UPDATED
