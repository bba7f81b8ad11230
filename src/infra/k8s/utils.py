"""Utility functions for the Kubernetes infrastructure layer.

Provides helper functions for running async code in sync contexts
and other common utilities.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Coroutine
from typing import Any


def run_sync[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine in a blocking sync context.

    This is useful for calling async KubernetesController methods
    from the synchronous deployment pipeline.

    Args:
        coro: The coroutine to execute

    Returns:
        The result of the coroutine

    Example:
        from src.infra.k8s import Kr8sController, run_sync

        controller = Kr8sController()
        namespaces = run_sync(controller.list_namespaces())
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No running loop, create a new one
        return asyncio.run(coro)
    else:
        # Already inside an event loop: run on a fresh loop in a worker thread
        if loop.is_running():
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor() as pool:
                future = pool.submit(asyncio.run, coro)
                return future.result()
        return loop.run_until_complete(coro)


def encode_secret_data(data: dict[str, str]) -> dict[str, str]:
    """Base64-encode plain-text values for a Secret's `data` field."""
    return {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in data.items()
    }
