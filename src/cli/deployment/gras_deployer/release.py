"""Helm release deployment of the assembled GRAS document.

There is no upgrade path: an existing release with the same name is
uninstalled before the chart is installed again with the new values.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]
from loguru import logger

from src.gras.document import normalize_keys
from src.gras.errors import ReleaseError
from src.infra.constants import DEFAULT_CONSTANTS, GrasConstants

from ..shell_commands import HelmCommandError

if TYPE_CHECKING:
    from src.cli.shared.console import CLIConsole

    from ..shell_commands import ShellCommands


def load_values(document_path: Path) -> dict[str, Any]:
    """Parse the working document as Helm values with string keys throughout.

    Raises:
        ReleaseError: If the document cannot be read or is not a mapping
    """
    try:
        raw = yaml.safe_load(document_path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ReleaseError(
            f"Failed to load values from {document_path}", details=str(e)
        ) from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ReleaseError(
            f"Values in {document_path} are not a mapping",
            details=f"Top-level YAML value is a {type(raw).__name__}",
        )
    return normalize_keys(raw)


class ReleaseDeployer:
    """Replaces the GRAS Helm release with a fresh install.

    Steps:
    1. List releases in the namespace; uninstall one with the same name
    2. Pull the fixed OCI chart and check that it loads
    3. Write the normalized values to a temporary file
    4. Install the release
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        constants: GrasConstants | None = None,
    ) -> None:
        self.commands = commands
        self.console = console
        self.constants = constants or DEFAULT_CONSTANTS

    def remove_existing(self, release_name: str, namespace: str) -> bool:
        """Uninstall the release if it exists.

        Returns:
            True if a release was removed

        Raises:
            ReleaseError: If listing or uninstalling fails
        """
        helm = self.commands.helm
        try:
            existing = helm.find_release(release_name, namespace)
        except HelmCommandError as e:
            raise ReleaseError("Failed to list releases", details=e.message) from e
        if existing is None:
            return False

        self.console.info(f"Uninstalling existing release {release_name}...")
        result = helm.uninstall(release_name, namespace)
        if not result.success:
            raise ReleaseError(
                f"Failed to uninstall existing release {release_name}",
                details=result.stderr or result.stdout,
            )
        logger.info(f"Existing release {release_name!r} uninstalled")
        return True

    def fetch_chart(self, destination: Path) -> Path:
        """Pull the GRAS chart into `destination` and verify it loads.

        Raises:
            ReleaseError: If the chart cannot be located or loaded
        """
        helm = self.commands.helm
        chart_ref = self.constants.chart_reference

        result = helm.pull(chart_ref, destination)
        if not result.success:
            raise ReleaseError(
                f"Failed to locate chart {chart_ref}", details=result.stderr or result.stdout
            )

        chart_path = destination / self.constants.CHART_NAME
        result = helm.show_chart(chart_path)
        if not result.success:
            raise ReleaseError(
                f"Failed to load chart {chart_ref}", details=result.stderr or result.stdout
            )
        return chart_path

    def deploy(self, document_path: Path, release_name: str, namespace: str) -> None:
        """Deploy the document as the values of a fresh release.

        Args:
            document_path: Path to the substituted working document
            release_name: Helm release name (the GRAS name)
            namespace: Target namespace

        Raises:
            ReleaseError: On any list/uninstall/locate/load/install failure
        """
        self.remove_existing(release_name, namespace)
        values = load_values(document_path)

        with tempfile.TemporaryDirectory(prefix="gras-chart-") as tmp:
            tmp_dir = Path(tmp)
            chart_path = self.fetch_chart(tmp_dir)

            values_file = tmp_dir / "values.yaml"
            with open(values_file, "w") as f:
                yaml.safe_dump(values, f, sort_keys=False)

            self.console.info(f"Installing release {release_name} in {namespace}...")
            result = self.commands.helm.install(
                release_name,
                chart_path,
                namespace,
                value_files=[values_file],
                timeout=self.constants.HELM_TIMEOUT,
                on_output=self.console.stream,
            )

        if not result.success:
            raise ReleaseError(
                f"Failed to install helm release {release_name}",
                details=result.stderr or result.stdout,
            )
        self.console.ok(f"Helm release {release_name} installed in namespace {namespace}")
