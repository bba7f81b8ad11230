"""Kr8s-based implementation of KubernetesController.

Uses the kr8s library for native async Kubernetes operations.
"""

from __future__ import annotations

import asyncio
import subprocess
from typing import Any

import kr8s
from kr8s.asyncio.objects import Namespace, Secret, new_class

from .controller import (
    CommandResult,
    CustomResource,
    KubernetesController,
    KubernetesError,
    ResourceExistsError,
    ResourceNotFoundError,
    ResourceRef,
)
from .utils import encode_secret_data


def _status_code(exc: Exception) -> int | None:
    """Extract the HTTP status code from a kr8s error, if any."""
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    if isinstance(code, int):
        return code
    status = getattr(exc, "status", None)
    if isinstance(status, dict) and isinstance(status.get("code"), int):
        return status["code"]
    return None


def _translate(exc: Exception, what: str) -> KubernetesError:
    """Map a kr8s exception onto the structured controller errors."""
    if isinstance(exc, kr8s.NotFoundError):
        return ResourceNotFoundError(f"{what} not found", status_code=404)
    code = _status_code(exc)
    if code == 409:
        return ResourceExistsError(f"{what} already exists", status_code=409)
    if code == 404:
        return ResourceNotFoundError(f"{what} not found", status_code=404)
    return KubernetesError(f"{what}: {exc}", status_code=code)


class Kr8sController(KubernetesController):
    """Kubernetes controller using kr8s library.

    Note: The kr8s API client is NOT cached because it's tied to the event loop
    that was running when created. When using run_sync() which calls asyncio.run(),
    each call creates a new event loop, making the cached API unusable.
    """

    def __init__(self, context: str | None = None) -> None:
        """Initialize the kr8s controller.

        Args:
            context: Optional kubeconfig context name (default: current context)
        """
        self._context = context

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        """Create a kr8s API client bound to the running event loop."""
        if self._context:
            return await kr8s.asyncio.api(context=self._context)
        return await kr8s.asyncio.api()

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    async def list_namespaces(self) -> list[str]:
        try:
            api = await self._get_api()
            return [ns.name async for ns in Namespace.list(api=api)]
        except Exception as e:
            raise _translate(e, "namespaces") from e

    async def namespace_exists(self, namespace: str) -> bool:
        try:
            api = await self._get_api()
            await Namespace.get(namespace, api=api)
            return True
        except kr8s.NotFoundError:
            return False
        except Exception as e:
            raise _translate(e, f'namespace "{namespace}"') from e

    async def create_namespace(self, namespace: str) -> None:
        try:
            api = await self._get_api()
            ns = Namespace({"metadata": {"name": namespace}}, api=api)
            await ns.create()
        except Exception as e:
            raise _translate(e, f'namespace "{namespace}"') from e

    # =========================================================================
    # Secret Operations
    # =========================================================================

    async def create_secret(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> None:
        try:
            api = await self._get_api()
            secret = Secret(
                {
                    "metadata": {"name": name, "namespace": namespace},
                    "type": "Opaque",
                    "data": encode_secret_data(data),
                },
                api=api,
            )
            await secret.create()
        except Exception as e:
            raise _translate(e, f'secret "{namespace}/{name}"') from e

    async def update_secret(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> None:
        try:
            api = await self._get_api()
            secret = await Secret.get(name, namespace=namespace, api=api)
            await secret.patch(
                [{"op": "add", "path": "/data", "value": encode_secret_data(data)}],
                type="json",
            )
        except Exception as e:
            raise _translate(e, f'secret "{namespace}/{name}"') from e

    # =========================================================================
    # Custom Resource Operations
    # =========================================================================

    def _resource_class(self, api_version: str, kind: str) -> Any:
        return new_class(kind=kind, version=api_version, namespaced=True)

    async def create_custom_resource(self, manifest: dict[str, Any]) -> None:
        metadata = manifest.get("metadata", {})
        what = f'{manifest.get("kind")} "{metadata.get("namespace")}/{metadata.get("name")}"'
        try:
            api = await self._get_api()
            cls = self._resource_class(manifest["apiVersion"], manifest["kind"])
            obj = cls(manifest, api=api)
            await obj.create()
        except Exception as e:
            raise _translate(e, what) from e

    async def get_custom_resource(self, ref: ResourceRef) -> CustomResource:
        try:
            api = await self._get_api()
            cls = self._resource_class(ref.api_version, ref.kind)
            obj = await cls.get(ref.name, namespace=ref.namespace, api=api)
        except Exception as e:
            raise _translate(e, f'{ref.kind} "{ref.namespace}/{ref.name}"') from e

        raw: dict[str, Any] = dict(obj.raw)
        return CustomResource(
            ref=ref,
            resource_version=raw.get("metadata", {}).get("resourceVersion", ""),
            spec=dict(raw.get("spec", {})),
            raw=raw,
        )

    async def update_custom_resource(self, manifest: dict[str, Any]) -> None:
        """Update a custom resource under optimistic concurrency.

        Sent as a JSON patch whose leading `test` operation pins the
        resourceVersion, so a concurrent writer makes the server reject the
        whole patch instead of being silently overwritten.
        """
        metadata = manifest.get("metadata", {})
        resource_version = metadata.get("resourceVersion")
        what = f'{manifest.get("kind")} "{metadata.get("namespace")}/{metadata.get("name")}"'
        if not resource_version:
            raise KubernetesError(f"{what}: update requires metadata.resourceVersion")

        operations: list[dict[str, Any]] = [
            {
                "op": "test",
                "path": "/metadata/resourceVersion",
                "value": resource_version,
            },
            {"op": "add", "path": "/spec", "value": manifest.get("spec", {})},
        ]
        if "labels" in metadata:
            operations.append(
                {"op": "add", "path": "/metadata/labels", "value": metadata["labels"]}
            )

        try:
            api = await self._get_api()
            cls = self._resource_class(manifest["apiVersion"], manifest["kind"])
            obj = await cls.get(
                metadata["name"], namespace=metadata.get("namespace"), api=api
            )
            await obj.patch(operations, type="json")
        except Exception as e:
            raise _translate(e, what) from e

    # =========================================================================
    # Manifests
    # =========================================================================

    async def apply_manifest(self, source: str) -> CommandResult:
        """Apply a manifest file or URL.

        Note: kr8s doesn't have a direct 'apply' equivalent, so we use
        kubectl subprocess for this operation. Server-side apply avoids the
        last-applied annotation size limit hit by large CRDs.
        """
        cmd = ["kubectl", "apply", "--server-side", "-f", source]
        if self._context:
            cmd.extend(["--context", self._context])

        def _run() -> CommandResult:
            try:
                result = subprocess.run(cmd, capture_output=True, text=True)
            except FileNotFoundError:
                return CommandResult(
                    success=False, stderr="kubectl: executable not found on PATH", returncode=127
                )
            return CommandResult(
                success=result.returncode == 0,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                returncode=result.returncode,
            )

        return await asyncio.to_thread(_run)
