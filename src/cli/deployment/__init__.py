"""Deployment of GRAS resources to Kubernetes.

The package is organized into subpackages for modularity:
- shell_commands: Abstractions for shell command execution (Helm)
- gras_deployer: Components for GRAS namespace, database and release deployment
"""

from src.gras.errors import DeploymentError

from .gras_deployer import GrasDeployer

__all__ = ["GrasDeployer", "DeploymentError"]
