"""Input resolution for a GRAS run.

Each configurable field is taken from, in order: the explicit CLI value,
the encoded-string flag, or an interactive prompt sequence. The result is
a single validated `GrasConfig`.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger
from pydantic import ValidationError

from src.infra.constants import DEFAULT_CONSTANTS

from .config import (
    DatabaseMode,
    DatasourceCredentials,
    DeployOptions,
    GrasConfig,
    TemplateKind,
)
from .descriptors import (
    MODEL_BASE_CLASSES,
    PROPERTY_TYPES,
    RELATION_TYPES,
    DiscoverySpec,
    Entry,
    ModelSpec,
    PropertySpec,
    RelationSpec,
)
from .encoding import decode_datasource, decode_entries
from .errors import InputError
from .prompts import Prompter

YES_NO = ["Yes", "No"]


def _parse_choice[E: Enum](value: str, enum_type: type[E], what: str) -> E:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise InputError(
            f"Invalid {what}: {value}", details=f"Allowed values: {allowed}"
        ) from None


class InputResolver:
    """Builds a `GrasConfig` from CLI options and prompts.

    Attributes:
        prompter: Prompt primitives used for every missing value
    """

    def __init__(self, prompter: Prompter) -> None:
        self.prompter = prompter

    def resolve(self, options: DeployOptions, *, render: bool = False) -> GrasConfig:
        """Resolve every field and validate the result.

        Raises:
            InputError: If a value is invalid or a prompt is cancelled
        """
        name = self.resolve_name(options.gras_name)
        template = self.resolve_template(options.gras_template)
        db_mode = self.resolve_db_mode(template, options.db_type)

        datasource: DatasourceCredentials | None = None
        schema = options.database_schema or ""
        db_file_path = DEFAULT_CONSTANTS.DEFAULT_DB_FILE_PATH

        if db_mode is DatabaseMode.EXTERNAL:
            datasource = self.resolve_datasource(options.datasources)
            schema = datasource.database or schema
        elif db_mode is DatabaseMode.INTERNAL and not schema:
            schema = self.prompter.ask_non_empty(
                "Enter database schema name", "Database schema cannot be empty"
            )
        if template is TemplateKind.DB_FILE:
            db_file_path = self.resolve_db_file_path(options.db_file_path)

        models: list[Entry] = []
        if template is TemplateKind.DB_MYSQL_MODEL_BASED:
            models = self.resolve_models(options.models)

        discoveries: list[Entry] = []
        if template is TemplateKind.DB_MYSQL_DISCOVERY_BASED:
            discoveries = self.resolve_discoveries(
                options.discoveries, options.auto_discovery, schema
            )

        relations = self.resolve_relations(options.relations)
        enable_gruim = self.resolve_gruim(options.enable_gruim)
        source_data = self.resolve_source_data(template, options.source_data)

        try:
            return GrasConfig(
                name=name,
                template=template,
                db_mode=db_mode,
                namespace=options.namespace or "",
                kube_context=options.kube_context or None,
                database_schema=schema if template.is_mysql else "",
                datasource=datasource,
                models=models,
                relations=relations,
                discoveries=discoveries,
                enable_gruim=enable_gruim,
                source_data=source_data,
                db_file_path=db_file_path,
                render=render,
            )
        except ValidationError as e:
            raise InputError("Invalid GRAS configuration", details=str(e)) from e

    # =========================================================================
    # Scalar fields
    # =========================================================================

    def resolve_name(self, value: str | None) -> str:
        pattern = DEFAULT_CONSTANTS.NAME_PATTERN
        if value:
            if not pattern.match(value):
                raise InputError(
                    f"Invalid GRAS name: {value}",
                    details="Only alphanumeric characters, hyphens and underscores are allowed",
                )
            return value
        return self.prompter.ask_matching(
            "Enter GRAS name",
            pattern,
            "Only alphanumeric characters, hyphens and underscores are allowed",
        )

    def resolve_template(self, value: str | None) -> TemplateKind:
        if value:
            return _parse_choice(value, TemplateKind, "GRAS template")
        choice = self.prompter.choose(
            "Please select template you want to create",
            [kind.value for kind in TemplateKind],
        )
        return TemplateKind(choice)

    def resolve_db_mode(
        self, template: TemplateKind, value: str | None
    ) -> DatabaseMode | None:
        if not template.is_mysql:
            if value:
                logger.debug(f"Ignoring --db-type={value} for template {template.value}")
            return None
        if value:
            return _parse_choice(value, DatabaseMode, "database type")
        choice = self.prompter.choose(
            "Select database type", [mode.value for mode in DatabaseMode]
        )
        return DatabaseMode(choice)

    def resolve_db_file_path(self, value: str | None) -> str:
        if value:
            return value
        return self.prompter.ask(
            "Enter DB file path", default=DEFAULT_CONSTANTS.DEFAULT_DB_FILE_PATH
        )

    def resolve_gruim(self, value: bool | None) -> bool:
        if value is not None:
            return value
        return self.prompter.choose("Do you want to enable GRUIM?", YES_NO) == "Yes"

    def resolve_source_data(self, template: TemplateKind, value: str | None) -> str:
        if value is not None or not template.is_mysql:
            return value or ""
        return self.prompter.ask("Enter source data URL (leave empty to skip)")

    # =========================================================================
    # Datasource
    # =========================================================================

    def resolve_datasource(self, encoded: str | None) -> DatasourceCredentials:
        if encoded:
            logger.info("Extracting datasource info from encoded input")
            return decode_datasource(encoded)

        p = self.prompter
        return DatasourceCredentials(
            database=p.ask_non_empty("Enter datasource name", "Datasource name cannot be empty"),
            host=p.ask("Enter host"),
            port=p.ask("Enter port"),
            user=p.ask("Enter user"),
            password=p.ask("Enter password", password=True),
            url=p.ask("Enter datasource URL (optional)"),
        )

    # =========================================================================
    # Models
    # =========================================================================

    def resolve_models(self, encoded: str | None) -> list[Entry]:
        if encoded:
            models = decode_entries(encoded, "model")
            if not models:
                logger.warning("No valid model definitions decoded; continuing without models")
            return models
        return self.prompt_models()

    def prompt_models(self) -> list[Entry]:
        """Prompt for models until an empty name is entered.

        At least one model is required.
        """
        p = self.prompter
        models: list[Entry] = []
        while True:
            label = (
                "Enter model name (at least one model is required)"
                if not models
                else "Enter model name (or leave empty to finish)"
            )
            name = p.ask(label)
            if not name:
                if models:
                    return models
                p.console.print("[yellow]At least one model is required[/yellow]")
                continue

            base = p.choose("Select model base class", MODEL_BASE_CLASSES)
            spec = ModelSpec(base=base, properties=self.prompt_properties())
            models.append(Entry.of(name, spec))

    def prompt_properties(self) -> dict[str, PropertySpec]:
        p = self.prompter
        properties: dict[str, PropertySpec] = {}
        id_selected = False
        while True:
            label = (
                "Enter property name (at least one property is required)"
                if not properties
                else "Enter property name (or leave empty to finish)"
            )
            prop_name = p.ask(label)
            if not prop_name:
                if properties:
                    return properties
                p.console.print("[yellow]At least one property is required[/yellow]")
                continue

            prop = PropertySpec(type=p.choose("Select property type", PROPERTY_TYPES))

            if not id_selected and p.confirm(f"Is {prop_name} the ID property?"):
                prop.id = True
                prop.required = True
                if p.confirm(f"Is {prop_name} generated automatically?"):
                    prop.generated = True
                id_selected = True
            elif p.confirm("Is this property required?"):
                prop.required = True
            else:
                default = p.ask("Default value (leave blank for none)")
                if default:
                    prop.default_fn = default

            properties[prop_name] = prop

    # =========================================================================
    # Discoveries
    # =========================================================================

    def resolve_discoveries(
        self, encoded: str | None, auto: bool | None, schema: str
    ) -> list[Entry]:
        if encoded:
            return decode_entries(encoded, "discovery")

        if auto is None:
            auto = (
                self.prompter.choose(
                    "Do you want discovery to be created automatically?", YES_NO
                )
                == "Yes"
            )
        if auto:
            return [Entry.of(schema, DiscoverySpec(schema=schema, dataSource=schema))]
        return [self.prompt_discovery(schema)]

    def prompt_discovery(self, schema: str) -> Entry:
        p = self.prompter
        name = p.ask_non_empty("Enter discovery name", "Discovery name cannot be empty")
        discover_all = (
            p.choose("Discover all models without prompting users to select?", YES_NO)
            == "Yes"
        )
        models = "" if discover_all else p.ask("Enter models (optional) e.g: table1,table2")
        optional_id = p.choose("Mark id property as optional field?", YES_NO) == "Yes"
        out_dir = p.ask("Enter outDir (optional)")
        relations = p.choose("Discover and create relations?", YES_NO) == "Yes"
        views = p.choose("Discover views?", YES_NO) == "Yes"

        spec = DiscoverySpec(
            all=discover_all,
            views=views,
            relations=relations,
            optionalId=optional_id,
            schema=schema,
            models=models,
            outDir=out_dir,
            dataSource=schema,
        )
        return Entry.of(name, spec)

    # =========================================================================
    # Relations
    # =========================================================================

    def resolve_relations(self, encoded: str | None) -> list[Entry]:
        # An explicitly empty flag means "no relations, don't ask"
        if encoded is not None:
            return decode_entries(encoded, "relation") if encoded else []
        return self.prompt_relations()

    def prompt_relations(self) -> list[Entry]:
        p = self.prompter
        relations: list[Entry] = []
        while True:
            name = p.ask("Enter relation name (or leave empty to finish)")
            if not name:
                return relations
            spec = RelationSpec(
                relationType=p.choose("Select relation type", RELATION_TYPES),
                relationName=name,
                sourceModel=p.ask("Enter source model"),
                destinationModel=p.ask("Enter target model"),
                foreignKeyName=p.ask("Enter foreign key name"),
            )
            relations.append(Entry.of(name, spec))
