"""Typed records for the sections of the assembled document.

Every record serializes to the wire shape the GRAS chart expects via
`to_document()`, which drops unset fields and uses the camelCase aliases.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROPERTY_TYPES = [
    "string",
    "integer",
    "boolean",
    "float",
    "array",
    "object",
    "date",
    "buffer",
    "geopoint",
    "any",
]
MODEL_BASE_CLASSES = ["Entity", "Model"]
RELATION_TYPES = ["belongsTo", "hasMany", "hasOne", "referencesMany"]


class WireModel(BaseModel):
    """Base for records written into the document."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Section Entries
# =============================================================================


class Entry(WireModel):
    """A `{name, spec}` item of a grapi list section.

    The spec stays an open mapping so entries decoded from encoded strings
    keep whatever properties the caller supplied.
    """

    name: str
    spec: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, name: str, spec: WireModel) -> Entry:
        return cls(name=name, spec=spec.to_document())


# =============================================================================
# Models, Relations, Discoveries
# =============================================================================


class PropertySpec(WireModel):
    """A single model property."""

    type: str = "string"
    id: bool | None = None
    required: bool | None = None
    generated: bool | None = None
    default_fn: str | None = Field(default=None, alias="defaultFn")


class ModelSpec(WireModel):
    base: str = "Entity"
    properties: dict[str, PropertySpec] = Field(default_factory=dict)


class RelationSpec(WireModel):
    relation_type: str = Field(alias="relationType")
    relation_name: str = Field(alias="relationName")
    source_model: str = Field(alias="sourceModel")
    destination_model: str = Field(alias="destinationModel")
    foreign_key_name: str = Field(alias="foreignKeyName")


class DiscoverySpec(WireModel):
    """Discovery flags.

    The automatic descriptor only carries `all`, `disableCamelCase`,
    `schema` and `dataSource`; the prompted one sets every field.
    """

    all: bool = True
    views: bool | None = None
    relations: bool | None = None
    optional_id: bool | None = Field(default=None, alias="optionalId")
    disable_camel_case: bool = Field(default=False, alias="disableCamelCase")
    schema_name: str = Field(alias="schema")
    models: str | None = None
    out_dir: str | None = Field(default=None, alias="outDir")
    data_source: str = Field(alias="dataSource")


# =============================================================================
# Datasources
# =============================================================================


class MysqlConnection(WireModel):
    """Connection block for a mysql datasource.

    Credentials are `$(var)` placeholders that Kubernetes resolves from the
    mounted credentials secret when the pod starts.
    """

    name: str
    host: str = "$(host)"
    port: str = "$(port)"
    user: str = "$(username)"
    password: str = "$(password)"
    database: str
    url: str | None = None


class MysqlDatasourceSpec(WireModel):
    mysql: MysqlConnection


class MemoryConnection(WireModel):
    connector: str = "memory"
    name: str
    file: str
    local_storage: str = Field(alias="localStorage")


class MemoryDatasourceSpec(WireModel):
    memory: MemoryConnection


# =============================================================================
# Init Containers and REST bindings
# =============================================================================


class InitContainerSpec(WireModel):
    name: str
    image: str
    command: list[str]


class RestCrudSpec(WireModel):
    datasource: str
