"""GRAS resource deployer.

This module provides the GrasDeployer class which runs a single
synthesis-then-apply pass:

1. Resolve inputs into a GrasConfig (flags, encoded strings, prompts)
2. Resolve the namespace, then create it and the credentials secret
3. Assemble the working document stage by stage
4. Substitute environment variables in the document
5. Deploy it as a Helm release, or render it to a manifest file

In render mode no cluster object is written; the only cluster call that
can happen is the namespace listing for the interactive namespace picker.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from src.gras.assembly import AssemblyPipeline, build_stages
from src.gras.config import DeployOptions, GrasConfig, TemplateKind
from src.gras.document import DocumentStore
from src.gras.env_substitution import load_env_file, substitute_document
from src.gras.errors import DeploymentError
from src.gras.inputs import InputResolver
from src.gras.render import RenderExporter
from src.infra.constants import DEFAULT_CONSTANTS, GrasConstants, GrasPaths
from src.infra.k8s import get_k8s_controller_sync

from ..shell_commands import ShellCommands
from .database import InternalDatabaseProvisioner, KubeBlocksInstaller
from .namespace import NamespaceProvisioner
from .release import ReleaseDeployer

if TYPE_CHECKING:
    from src.cli.shared.console import CLIConsole
    from src.gras.prompts import Prompter
    from src.infra.k8s import KubernetesControllerSync


class GrasDeployer:
    """Orchestrates GRAS synthesis and deployment.

    Attributes:
        console: Console for user-facing output
        prompter: Prompt primitives for missing values
        paths: Template and working file locations
        constants: Fixed chart, KubeBlocks and output settings
    """

    def __init__(
        self,
        console: CLIConsole,
        prompter: Prompter,
        *,
        controller: KubernetesControllerSync | None = None,
        commands: ShellCommands | None = None,
        paths: GrasPaths | None = None,
        constants: GrasConstants | None = None,
        exporter: RenderExporter | None = None,
        env_file: Path | None = None,
    ) -> None:
        """Initialize the deployer.

        Args:
            console: Console for user-facing output
            prompter: Prompt primitives
            controller: Kubernetes controller (built from the kube context
                        on first use if not given)
            commands: Shell command executor (built on first use if not given)
            paths: Template and working file locations
            constants: Fixed deployment settings
            exporter: Render exporter used in render mode
            env_file: `.env` file to load before substitution
        """
        self.console = console
        self.prompter = prompter
        self.paths = paths or GrasPaths()
        self.constants = constants or DEFAULT_CONSTANTS
        self.exporter = exporter or RenderExporter(self.paths.render_output_dir)
        self.store = DocumentStore(self.paths.working_document)
        self.env_file = env_file
        self._controller = controller
        self._commands = commands
        self._kube_context: str | None = None

    # =========================================================================
    # Collaborators
    # =========================================================================

    @property
    def controller(self) -> KubernetesControllerSync:
        if self._controller is None:
            self._controller = get_k8s_controller_sync(self._kube_context)
        return self._controller

    @property
    def commands(self) -> ShellCommands:
        if self._commands is None:
            self._commands = ShellCommands(kube_context=self._kube_context)
        return self._commands

    def _namespace_provisioner(self) -> NamespaceProvisioner:
        return NamespaceProvisioner(self.controller, self.prompter, self.console)

    def _database_provisioner(self) -> InternalDatabaseProvisioner:
        installer = KubeBlocksInstaller(
            self.commands, self.controller, self.console, self.constants
        )
        return InternalDatabaseProvisioner(
            self.controller, installer, self.console, self.paths
        )

    # =========================================================================
    # Workflow
    # =========================================================================

    def run(self, options: DeployOptions, *, render: bool = False) -> Path | None:
        """Run the pipeline.

        Args:
            options: Raw CLI options
            render: Write a manifest instead of deploying

        Returns:
            The rendered manifest path in render mode, None otherwise

        Raises:
            DeploymentError: On any fatal failure
        """
        config = InputResolver(self.prompter).resolve(options, render=render)
        self._kube_context = config.kube_context
        self.console.info(f"gras name: {config.name}")
        self.console.info(f"gras template: {config.template.value}")

        namespaces = self._namespace_provisioner()
        namespace = namespaces.resolve_namespace(config.namespace)
        config = config.model_copy(update={"namespace": namespace})
        self.console.info(f"Preparing namespace for GRAS installation in {namespace}")

        if not render:
            namespaces.ensure_namespace(namespace)
            namespaces.ensure_credentials_secret(config)

        try:
            return self._assemble_and_finish(config)
        except DeploymentError as e:
            if self.store.path.exists():
                e.with_note(f"Working document kept at {self.store.path}")
            raise

    def _assemble_and_finish(self, config: GrasConfig) -> Path | None:
        provision_database = None if config.render else self._database_provisioner()
        pipeline = AssemblyPipeline(
            self.store,
            build_stages(provision_database, self.paths.templates_dir),
            self.paths,
        )
        pipeline.run(config)

        self.console.info("Substituting environment variables in the template...")
        load_env_file(self.env_file)
        extra = (
            {"db_file": config.db_file_path}
            if config.template is TemplateKind.DB_FILE
            else None
        )
        substitute_document(self.store, extra)

        if config.render:
            path = self.exporter.export(self.store.read(), config)
            self.console.ok(f"GRAS manifest written to {path}")
            return path

        self.console.info("Deploying the template using Helm")
        ReleaseDeployer(self.commands, self.console, self.constants).deploy(
            self.store.path, config.name, config.namespace
        )
        logger.debug(f"Working document left at {self.store.path}")
        self.console.ok("Resource deployed successfully!")
        return None
