"""Template assembly pipeline.

The working document is built by a fixed, ordered list of stages. Each
stage declares the document sections it reads and writes; the pipeline
checks at construction time that every section a stage reads is written
by an earlier stage, so a reordering mistake fails fast instead of
producing a half-built document.

Stages run against the on-disk document: each one reads the current
document, mutates only the sections it owns and writes the whole document
back.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from loguru import logger

from src.infra.constants import DEFAULT_CONSTANTS, GrasPaths

from .config import GrasConfig, TemplateKind
from .descriptors import (
    Entry,
    InitContainerSpec,
    MemoryConnection,
    MemoryDatasourceSpec,
    MysqlConnection,
    MysqlDatasourceSpec,
    RestCrudSpec,
)
from .document import Document, DocumentStore
from .errors import PipelineOrderError

# Called before the internal datasource is written; creates the database.
DatabaseProvisioner = Callable[[GrasConfig], None]

SEED_SECTIONS = frozenset({"grapi", "gruim"})


@dataclass(frozen=True)
class AssemblyStage:
    """A named document mutation.

    Attributes:
        name: Stage name used in logs and errors
        run: Mutates the document in place
        reads: Document sections the stage depends on
        writes: Document sections the stage owns
        applies: Predicate deciding whether the stage runs for a config
    """

    name: str
    run: Callable[[Document, GrasConfig], None]
    reads: frozenset[str] = field(default_factory=frozenset)
    writes: frozenset[str] = field(default_factory=frozenset)
    applies: Callable[[GrasConfig], bool] = lambda config: True


# =============================================================================
# Helpers
# =============================================================================


def _append_entries(document: Document, section: str, entries: Sequence[Entry]) -> None:
    grapi = document.grapi
    existing = grapi.get(section)
    items: list[Any] = list(existing) if isinstance(existing, list) else []
    items.extend(entry.to_document() for entry in entries)
    grapi[section] = items


def _set_primary_datasource(document: Document, entry: Entry) -> None:
    """Replace `grapi.datasources[0]`, or append when the list is empty."""
    grapi = document.grapi
    datasources = grapi.get("datasources")
    if not isinstance(datasources, list):
        datasources = []
    if datasources:
        datasources[0] = entry.to_document()
    else:
        datasources.append(entry.to_document())
    grapi["datasources"] = datasources


def primary_datasource_name(document: Document, config: GrasConfig) -> str:
    """Name of `grapi.datasources[0]`, falling back to the configured name."""
    datasources = document.grapi.get("datasources")
    if isinstance(datasources, list) and datasources:
        first = datasources[0]
        if isinstance(first, dict) and isinstance(first.get("name"), str):
            return first["name"]
    return config.datasource_name


def _script_environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(templates_dir / "scripts"),
        undefined=StrictUndefined,
        autoescape=False,
    )


def render_init_script(config: GrasConfig, templates_dir: Path | None = None) -> str:
    """Render the init container shell script for the configured template."""
    env = _script_environment(templates_dir or GrasPaths().templates_dir)
    if config.template.is_mysql:
        template = env.get_template("init-mysql.sh.j2")
        return template.render(
            schema=config.database_schema, source_data=config.source_data
        ).strip()
    template = env.get_template("init-file.sh.j2")
    return template.render(path=config.db_file_path, source_data=config.source_data).strip()


# =============================================================================
# Stages
# =============================================================================


def apply_models(document: Document, config: GrasConfig) -> None:
    _append_entries(document, "models", config.models)


def apply_discoveries(document: Document, config: GrasConfig) -> None:
    # Encoded input may carry several descriptors; prompts produce one
    document.grapi["discoveries"] = [entry.to_document() for entry in config.discoveries]


def _mysql_datasource(config: GrasConfig, url: str | None = None) -> Entry:
    schema = config.database_schema
    connection = MysqlConnection(name=schema, database=schema, url=url)
    return Entry.of(schema, MysqlDatasourceSpec(mysql=connection))


def make_internal_datasource_stage(
    provision_database: DatabaseProvisioner | None,
) -> Callable[[Document, GrasConfig], None]:
    def apply_internal_datasource(document: Document, config: GrasConfig) -> None:
        if provision_database is not None:
            provision_database(config)
        _set_primary_datasource(document, _mysql_datasource(config))
        document.grapi["extraSecrets"] = [config.credential_secret_name]

    return apply_internal_datasource


def apply_external_datasource(document: Document, config: GrasConfig) -> None:
    url = config.datasource.url if config.datasource else ""
    _set_primary_datasource(document, _mysql_datasource(config, url))
    document.grapi["extraSecrets"] = [config.credential_secret_name]


def apply_file_datasource(document: Document, config: GrasConfig) -> None:
    name = DEFAULT_CONSTANTS.FILE_DATASOURCE_NAME
    connection = MemoryConnection(name=name, file=config.db_file_path, localStorage=name)
    document.grapi["datasources"] = [
        Entry.of(name, MemoryDatasourceSpec(memory=connection)).to_document()
    ]


def apply_relations(document: Document, config: GrasConfig) -> None:
    if config.relations:
        _append_entries(document, "relations", config.relations)


def apply_gruim(document: Document, config: GrasConfig) -> None:
    if config.enable_gruim:
        logger.debug("GRUIM enabled, keeping the base template's gruim section")
        return
    logger.debug("GRUIM disabled, removing the gruim section")
    document.remove("gruim")


def make_init_containers_stage(
    templates_dir: Path | None,
) -> Callable[[Document, GrasConfig], None]:
    def apply_init_containers(document: Document, config: GrasConfig) -> None:
        script = render_init_script(config, templates_dir)
        if config.template.is_mysql:
            entry = Entry.of(
                "init-db",
                InitContainerSpec(name="init-db", image="mysql", command=["bash", "-c", script]),
            )
        else:
            entry = Entry.of(
                "test",
                InitContainerSpec(
                    name="init-db", image="busybox:1.28", command=["sh", "-c", script]
                ),
            )
        document.grapi["initContainers"] = [entry.to_document()]

    return apply_init_containers


def apply_restcruds(document: Document, config: GrasConfig) -> None:
    datasource = primary_datasource_name(document, config)
    name = "restcrud" if config.template is TemplateKind.DB_FILE else datasource
    document.grapi["restcruds"] = [
        Entry.of(name, RestCrudSpec(datasource=datasource)).to_document()
    ]


def build_stages(
    provision_database: DatabaseProvisioner | None = None,
    templates_dir: Path | None = None,
) -> list[AssemblyStage]:
    """The assembly stages in execution order (seeding excluded).

    Args:
        provision_database: Creates the internal database before its
                            datasource is written; None in render mode
        templates_dir: Directory holding the init script templates
    """
    return [
        AssemblyStage(
            name="models",
            run=apply_models,
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.models"}),
            applies=lambda c: c.template is TemplateKind.DB_MYSQL_MODEL_BASED,
        ),
        AssemblyStage(
            name="discoveries",
            run=apply_discoveries,
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.discoveries"}),
            applies=lambda c: c.template is TemplateKind.DB_MYSQL_DISCOVERY_BASED,
        ),
        AssemblyStage(
            name="internal-datasource",
            run=make_internal_datasource_stage(provision_database),
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.datasources", "grapi.extraSecrets"}),
            applies=lambda c: c.is_internal_db,
        ),
        AssemblyStage(
            name="external-datasource",
            run=apply_external_datasource,
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.datasources", "grapi.extraSecrets"}),
            applies=lambda c: c.is_external_db,
        ),
        AssemblyStage(
            name="file-datasource",
            run=apply_file_datasource,
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.datasources"}),
            applies=lambda c: c.template is TemplateKind.DB_FILE,
        ),
        AssemblyStage(
            name="relations",
            run=apply_relations,
            reads=frozenset({"grapi"}),
            writes=frozenset({"grapi.relations"}),
        ),
        AssemblyStage(
            name="gruim",
            run=apply_gruim,
            reads=frozenset({"gruim"}),
            writes=frozenset({"gruim"}),
        ),
        AssemblyStage(
            name="init-containers",
            run=make_init_containers_stage(templates_dir),
            reads=frozenset({"grapi.datasources"}),
            writes=frozenset({"grapi.initContainers"}),
        ),
        AssemblyStage(
            name="restcruds",
            run=apply_restcruds,
            reads=frozenset({"grapi.datasources"}),
            writes=frozenset({"grapi.restcruds"}),
        ),
    ]


# =============================================================================
# Pipeline
# =============================================================================


class AssemblyPipeline:
    """Seeds the working document and applies the stages in order."""

    def __init__(
        self,
        store: DocumentStore,
        stages: Sequence[AssemblyStage],
        paths: GrasPaths | None = None,
    ) -> None:
        """Initialize the pipeline.

        Raises:
            PipelineOrderError: If a stage reads a section that no earlier
                                stage writes
        """
        self.store = store
        self.stages = list(stages)
        self.paths = paths or GrasPaths()
        self.validate_order(self.stages)

    @staticmethod
    def validate_order(stages: Sequence[AssemblyStage]) -> None:
        written = set(SEED_SECTIONS)
        names: set[str] = set()
        for stage in stages:
            if stage.name in names:
                raise PipelineOrderError(f"Duplicate assembly stage '{stage.name}'")
            names.add(stage.name)
            missing = sorted(stage.reads - written)
            if missing:
                raise PipelineOrderError(
                    f"Assembly stage '{stage.name}' runs before its inputs are written",
                    details=f"No earlier stage writes: {', '.join(missing)}",
                )
            written |= stage.writes

    def base_template(self, config: GrasConfig) -> Path:
        if config.template is TemplateKind.DB_FILE:
            return self.paths.db_file_template
        return self.paths.db_template

    def run(self, config: GrasConfig) -> Document:
        """Seed the working document and apply every stage that applies."""
        template = self.base_template(config)
        logger.info(f"Seeding working document from {template.name}")
        self.store.seed(template)

        document = self.store.read()
        for stage in self.stages:
            if not stage.applies(config):
                logger.debug(f"Skipping stage {stage.name}")
                continue
            logger.info(f"Applying stage {stage.name}")
            document = self.store.read()
            stage.run(document, config)
            self.store.write(document)
        return document
