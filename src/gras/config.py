"""Configuration for a single GRAS synthesis run.

`DeployOptions` holds the raw CLI values; `GrasConfig` is the validated
struct the input resolver builds from them and every later stage reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from src.infra.constants import DEFAULT_CONSTANTS

from .descriptors import Entry


class TemplateKind(str, Enum):
    """Base template selected for the GRAS resource."""

    DB_FILE = "db-file"
    DB_MYSQL_MODEL_BASED = "db-mysql-model-based"
    DB_MYSQL_DISCOVERY_BASED = "db-mysql-discovery-based"

    @property
    def is_mysql(self) -> bool:
        return self is not TemplateKind.DB_FILE


class DatabaseMode(str, Enum):
    """Where the mysql database of a mysql-backed template lives."""

    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass
class DeployOptions:
    """Raw values from the command line.

    `None` means the flag was not given, which is different from an
    explicitly empty value: `--relations ""` skips the relation prompts.
    """

    gras_name: str | None = None
    gras_template: str | None = None
    db_type: str | None = None
    models: str | None = None
    relations: str | None = None
    datasources: str | None = None
    discoveries: str | None = None
    database_schema: str | None = None
    auto_discovery: bool | None = None
    source_data: str | None = None
    enable_gruim: bool | None = None
    db_file_path: str | None = None
    kube_context: str | None = None
    namespace: str | None = None


class DatasourceCredentials(BaseModel):
    """Connection details for an external mysql database."""

    database: str = ""
    host: str = ""
    port: str = ""
    user: str = ""
    password: str = ""
    url: str = ""

    def secret_data(self) -> dict[str, str]:
        """Plain-text payload of the `<release>-conn-credential` secret."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.user,
            "password": self.password,
        }


class GrasConfig(BaseModel):
    """Resolved configuration passed to every pipeline stage."""

    name: str
    template: TemplateKind
    db_mode: DatabaseMode | None = None
    namespace: str = ""
    kube_context: str | None = None
    database_schema: str = ""
    datasource: DatasourceCredentials | None = None
    models: list[Entry] = Field(default_factory=list)
    relations: list[Entry] = Field(default_factory=list)
    discoveries: list[Entry] = Field(default_factory=list)
    enable_gruim: bool = False
    source_data: str = ""
    db_file_path: str = DEFAULT_CONSTANTS.DEFAULT_DB_FILE_PATH
    render: bool = False

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not DEFAULT_CONSTANTS.NAME_PATTERN.match(value):
            raise ValueError(
                f"invalid GRAS name '{value}': only alphanumeric characters, "
                "hyphens and underscores are allowed"
            )
        return value

    @model_validator(mode="after")
    def _validate_database(self) -> GrasConfig:
        if self.template.is_mysql:
            if self.db_mode is None:
                raise ValueError(
                    f"template '{self.template.value}' requires a database mode "
                    "(internal or external)"
                )
            if not self.database_schema:
                raise ValueError(
                    f"template '{self.template.value}' requires a database schema"
                )
        elif self.db_mode is not None:
            raise ValueError("the db-file template does not use a database mode")
        return self

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def datasource_name(self) -> str:
        """Name of the primary datasource the REST bindings point at."""
        if self.template.is_mysql:
            return self.database_schema
        return DEFAULT_CONSTANTS.FILE_DATASOURCE_NAME

    @property
    def credential_secret_name(self) -> str:
        return DEFAULT_CONSTANTS.credential_secret_name(self.name)

    @property
    def is_internal_db(self) -> bool:
        return self.db_mode is DatabaseMode.INTERNAL

    @property
    def is_external_db(self) -> bool:
        return self.db_mode is DatabaseMode.EXTERNAL
