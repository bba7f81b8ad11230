"""Decoder for the compact encoded-string inputs.

Grammar: entries separated by `|`, each entry `name:{json properties}`.
Single quotes are accepted in place of double quotes, so shells can pass
`user:{'type':'string'}` without escaping.

Example:
    >>> decode_entries("user:{'type':'string','required':true}")
    [Entry(name='user', spec={'type': 'string', 'required': True})]
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from loguru import logger

from .config import DatasourceCredentials
from .descriptors import Entry

ENTRY_SEPARATOR = "|"
NAME_SEPARATOR = ":"

_DATASOURCE_FIELDS = ("database", "host", "port", "user", "password", "url")


def _iter_parts(encoded: str, what: str) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield `(name, properties)` for every well-formed entry."""
    for part in encoded.split(ENTRY_SEPARATOR):
        part = part.replace("'", '"')
        if not part.strip():
            continue
        name, sep, payload = part.partition(NAME_SEPARATOR)
        if not sep:
            logger.warning(f"Skipping {what} entry without '{NAME_SEPARATOR}': {part!r}")
            continue
        try:
            props = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping {what} entry {name!r}: invalid JSON ({e})")
            continue
        if not isinstance(props, dict):
            logger.warning(f"Skipping {what} entry {name!r}: properties must be an object")
            continue
        yield name, props


def decode_entries(encoded: str, what: str = "entry") -> list[Entry]:
    """Decode an encoded string into `{name, spec}` entries.

    Malformed entries are logged and skipped; they never fail the run.

    Args:
        encoded: Encoded input, e.g. "user:{...}|order:{...}"
        what: Label used in warnings (model, relation, discovery)

    Returns:
        Decoded entries in input order
    """
    return [Entry(name=name, spec=props) for name, props in _iter_parts(encoded, what)]


def decode_datasource(encoded: str) -> DatasourceCredentials:
    """Decode datasource credentials.

    Fields are merged across entries and the last value wins. Only string
    values are taken; the entry names are ignored.
    """
    values: dict[str, str] = {}
    for _, props in _iter_parts(encoded, "datasource"):
        for field in _DATASOURCE_FIELDS:
            value = props.get(field)
            if isinstance(value, str):
                values[field] = value
    return DatasourceCredentials(**values)
