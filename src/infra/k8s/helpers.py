from __future__ import annotations

from cachetools.func import lru_cache  # type: ignore

from src.infra.k8s.controller import KubernetesController, KubernetesControllerSync


@lru_cache(maxsize=8)
def get_k8s_controller(context: str | None = None) -> KubernetesController:
    """Get an instance of the KubernetesController.

    Args:
        context: Optional kubeconfig context name

    Returns:
        An instance of KubernetesController
    """
    from src.infra.k8s.kr8s_controller import Kr8sController

    return Kr8sController(context=context)


@lru_cache(maxsize=8)
def get_k8s_controller_sync(context: str | None = None) -> KubernetesControllerSync:
    """Get a synchronous wrapper for KubernetesController.

    Args:
        context: Optional kubeconfig context name

    Returns:
        An instance of KubernetesControllerSync wrapping the async controller
    """
    return KubernetesControllerSync(get_k8s_controller(context))
