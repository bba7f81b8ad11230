"""GrappleApplicationSet manifest rendering.

Wraps the assembled document into the outer GRAS manifest and writes it to
a timestamped file instead of deploying it.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from src.infra.constants import DEFAULT_CONSTANTS

from .config import GrasConfig
from .document import Document, normalize_keys
from .errors import DocumentError


def build_manifest(document: Document, config: GrasConfig) -> dict[str, Any]:
    """Build the GrappleApplicationSet manifest for an assembled document."""
    constants = DEFAULT_CONSTANTS
    spec: dict[str, Any] = {
        "name": config.name,
        "grapis": [{"name": config.name, "spec": document.data.get("grapi")}],
    }
    if config.enable_gruim:
        spec["gruims"] = [{"name": config.name, "spec": document.data.get("gruim")}]

    return normalize_keys(
        {
            "apiVersion": constants.GRAS_API_VERSION,
            "kind": constants.GRAS_KIND,
            "metadata": {"name": config.name, "namespace": config.namespace},
            "spec": spec,
        }
    )


class RenderExporter:
    """Writes rendered manifests to `gras-resource-<timestamp>.yaml` files."""

    def __init__(
        self,
        output_dir: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.output_dir = output_dir or Path(DEFAULT_CONSTANTS.RENDER_OUTPUT_DIR)
        self._clock = clock

    def output_path(self) -> Path:
        constants = DEFAULT_CONSTANTS
        timestamp = self._clock().strftime(constants.RENDER_TIMESTAMP_FORMAT)
        return self.output_dir / f"{constants.RENDER_FILE_PREFIX}{timestamp}.yaml"

    def export(self, document: Document, config: GrasConfig) -> Path:
        """Write the manifest and return its path.

        Raises:
            DocumentError: If the manifest cannot be written
        """
        manifest = build_manifest(document, config)
        path = self.output_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(manifest, f, sort_keys=False)
        except OSError as e:
            raise DocumentError(
                f"Failed to write GRAS manifest {path}", details=str(e)
            ) from e
        return path
