"""GRAS resource commands.

This module provides `grpl resource deploy` and `grpl resource render`.
Both build the same document; deploy installs it as a Helm release, render
writes it to a GrappleApplicationSet manifest file.

Every value can be given as a flag. Models, relations, discoveries and
datasources also accept an encoded string (`name:{json}|name:{json}`);
anything missing is asked for interactively.
"""

from pathlib import Path
from typing import Annotated

import typer

from src.cli.shared.console import configure_logging, console, with_error_handling
from src.gras.config import DeployOptions
from src.gras.prompts import Prompter
from src.infra.constants import DEFAULT_CONSTANTS, GrasPaths

resource_app = typer.Typer(help="📦 GRAS resource commands")

# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

GrasNameOption = Annotated[
    str | None, typer.Option("--gras-name", help="Name of the GRAS resource")
]
GrasTemplateOption = Annotated[
    str | None,
    typer.Option(
        "--gras-template",
        help="Template: db-file, db-mysql-model-based or db-mysql-discovery-based",
    ),
]
DbTypeOption = Annotated[
    str | None, typer.Option("--db-type", help="Database type (internal or external)")
]
ModelsOption = Annotated[
    str | None, typer.Option("--models", help="Models input (if not interactive)")
]
RelationsOption = Annotated[
    str | None,
    typer.Option(
        "--relations",
        help='Relations input (if not interactive); pass "" to skip relations',
    ),
]
DatasourcesOption = Annotated[
    str | None,
    typer.Option("--datasources", help="Datasources input (if not interactive)"),
]
DiscoveriesOption = Annotated[
    str | None,
    typer.Option("--discoveries", help="Discoveries input (if not interactive)"),
]
DatabaseSchemaOption = Annotated[
    str | None, typer.Option("--database-schema", help="Database schema")
]
AutoDiscoveryOption = Annotated[
    bool | None,
    typer.Option(
        "--auto-discovery/--no-auto-discovery", help="Create the discovery automatically"
    ),
]
SourceDataOption = Annotated[
    str | None, typer.Option("--source-data", help="Seed data URL")
]
EnableGruimOption = Annotated[
    bool | None,
    typer.Option("--enable-gruim/--disable-gruim", help="Enable the GRUIM UI"),
]
DbFilePathOption = Annotated[
    str | None, typer.Option("--db-file-path", help="Path to the DB file (db-file template)")
]
KubeContextOption = Annotated[
    str | None, typer.Option("--kube-context", help="Kubernetes context to use")
]
NamespaceOption = Annotated[
    str | None,
    typer.Option("--namespace", "-n", help="Kubernetes namespace to use"),
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Show debug logging on stderr")
]


def _run(
    options: DeployOptions,
    *,
    render: bool,
    verbose: bool,
    output_dir: Path | None = None,
) -> None:
    """Build a deployer and run one pass."""
    from src.cli.deployment.gras_deployer import GrasDeployer

    configure_logging(DEFAULT_CONSTANTS.LOG_FILE, verbose)
    paths = GrasPaths(render_output_dir=output_dir)
    deployer = GrasDeployer(console, Prompter(console.console), paths=paths)
    deployer.run(options, render=render)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@resource_app.command()
@with_error_handling
def deploy(
    gras_name: GrasNameOption = None,
    gras_template: GrasTemplateOption = None,
    db_type: DbTypeOption = None,
    models: ModelsOption = None,
    relations: RelationsOption = None,
    datasources: DatasourcesOption = None,
    discoveries: DiscoveriesOption = None,
    database_schema: DatabaseSchemaOption = None,
    auto_discovery: AutoDiscoveryOption = None,
    source_data: SourceDataOption = None,
    enable_gruim: EnableGruimOption = None,
    db_file_path: DbFilePathOption = None,
    kube_context: KubeContextOption = None,
    namespace: NamespaceOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Deploy a GRAS resource to the cluster.

    Creates the namespace and database objects it needs, then installs the
    GRAS chart as a Helm release, replacing any release with the same name.
    """
    console.print_header("Deploying GRAS Resource")
    _run(
        DeployOptions(
            gras_name=gras_name,
            gras_template=gras_template,
            db_type=db_type,
            models=models,
            relations=relations,
            datasources=datasources,
            discoveries=discoveries,
            database_schema=database_schema,
            auto_discovery=auto_discovery,
            source_data=source_data,
            enable_gruim=enable_gruim,
            db_file_path=db_file_path,
            kube_context=kube_context,
            namespace=namespace,
        ),
        render=False,
        verbose=verbose,
    )


@resource_app.command()
@with_error_handling
def render(
    gras_name: GrasNameOption = None,
    gras_template: GrasTemplateOption = None,
    db_type: DbTypeOption = None,
    models: ModelsOption = None,
    relations: RelationsOption = None,
    datasources: DatasourcesOption = None,
    discoveries: DiscoveriesOption = None,
    database_schema: DatabaseSchemaOption = None,
    auto_discovery: AutoDiscoveryOption = None,
    source_data: SourceDataOption = None,
    enable_gruim: EnableGruimOption = None,
    db_file_path: DbFilePathOption = None,
    kube_context: KubeContextOption = None,
    namespace: NamespaceOption = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", help="Directory for the rendered manifest"),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Render a GRAS resource to a GrappleApplicationSet manifest.

    Nothing is written to the cluster. The manifest is saved as
    gras-resource-<timestamp>.yaml.
    """
    console.print_header("Rendering GRAS Resource")
    _run(
        DeployOptions(
            gras_name=gras_name,
            gras_template=gras_template,
            db_type=db_type,
            models=models,
            relations=relations,
            datasources=datasources,
            discoveries=discoveries,
            database_schema=database_schema,
            auto_discovery=auto_discovery,
            source_data=source_data,
            enable_gruim=enable_gruim,
            db_file_path=db_file_path,
            kube_context=kube_context,
            namespace=namespace,
        ),
        render=True,
        verbose=verbose,
        output_dir=output_dir,
    )
