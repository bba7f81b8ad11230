"""YAML-backed working document.

The document is seeded from a static base template and then read, mutated
and written back by every assembly stage. It stays on disk after a failed
run so it can be inspected.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from loguru import logger

from .errors import DocumentError


def normalize_keys(value: Any) -> Any:
    """Recursively convert mapping keys to strings.

    YAML allows non-string keys (`1: x`, `true: y`); Helm values and the
    GRAS manifest do not.
    """
    if isinstance(value, dict):
        return {str(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [normalize_keys(v) for v in value]
    return value


class Document:
    """The assembled GRAS document.

    Top-level sections are `grapi` (backend) and the optional `gruim` (UI).
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = data if data is not None else {}

    @property
    def grapi(self) -> dict[str, Any]:
        """The `grapi` section, replaced by an empty mapping if absent or not a mapping."""
        section = self.data.get("grapi")
        if not isinstance(section, dict):
            if section is not None:
                logger.warning(
                    f"grapi section is a {type(section).__name__}, resetting it to a mapping"
                )
            section = {}
            self.data["grapi"] = section
        return section

    @property
    def gruim(self) -> Any:
        return self.data.get("gruim")

    def has(self, key: str) -> bool:
        return key in self.data

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def to_dict(self) -> dict[str, Any]:
        return normalize_keys(self.data)


class DocumentStore:
    """Reads and writes the working document at a fixed path."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def seed(self, template: Path) -> Document:
        """Copy a base template over the working document."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(template, self.path)
        except OSError as e:
            raise DocumentError(
                f"Failed to read template file {template}", details=str(e)
            ) from e
        logger.debug(f"Seeded {self.path} from {template}")
        return self.read()

    def read(self) -> Document:
        try:
            content = self.path.read_text()
        except OSError as e:
            raise DocumentError(
                f"Failed to read working document {self.path}", details=str(e)
            ) from e
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DocumentError(
                f"Failed to parse working document {self.path}", details=str(e)
            ) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DocumentError(
                f"Working document {self.path} is not a mapping",
                details=f"Top-level YAML value is a {type(data).__name__}",
            )
        return Document(data)

    def write(self, document: Document) -> None:
        try:
            with open(self.path, "w") as f:
                yaml.safe_dump(document.to_dict(), f, sort_keys=False)
        except OSError as e:
            raise DocumentError(
                f"Failed to write working document {self.path}", details=str(e)
            ) from e

    def read_text(self) -> str:
        try:
            return self.path.read_text()
        except OSError as e:
            raise DocumentError(
                f"Failed to read working document {self.path}", details=str(e)
            ) from e

    def write_text(self, content: str) -> None:
        try:
            self.path.write_text(content)
        except OSError as e:
            raise DocumentError(
                f"Failed to write working document {self.path}", details=str(e)
            ) from e
