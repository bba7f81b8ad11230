"""GRAS deployer package.

Each deployment concern lives in its own module:

- namespace: namespace selection, get-or-create and the credentials secret
- database: KubeBlocks installation and the internal database cluster
- release: Helm uninstall-then-install of the assembled document
- deployer: the GrasDeployer orchestrating a full run

Usage:
    from src.cli.deployment.gras_deployer import GrasDeployer

    deployer = GrasDeployer(console, Prompter())
    deployer.run(DeployOptions(gras_name="orders", namespace="shop"))
"""

from .database import InternalDatabaseProvisioner, KubeBlocksInstaller
from .deployer import GrasDeployer
from .namespace import NamespaceProvisioner
from .release import ReleaseDeployer

__all__ = [
    "GrasDeployer",
    # Component classes for testing/extension
    "NamespaceProvisioner",
    "KubeBlocksInstaller",
    "InternalDatabaseProvisioner",
    "ReleaseDeployer",
]
