"""Deployment constants and configuration.

This module centralizes all magic strings, paths, and configuration values
used throughout the GRAS synthesis and deployment process.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class GrasConstants:
    """Constants for GRAS synthesis and Kubernetes/Helm deployment.

    All attributes are class-level and immutable.
    """

    # GRAS chart
    CHART_REGISTRY: str = "public.ecr.aws/p7h7z5g3"
    CHART_NAME: str = "gras-deploy"

    # GRAS manifest
    GRAS_API_VERSION: str = "grsf.grpl.io/v1alpha1"
    GRAS_KIND: str = "GrappleApplicationSet"

    # KubeBlocks runtime
    KUBEBLOCKS_RELEASE_NAME: str = "kubeblocks"
    KUBEBLOCKS_NAMESPACE: str = "kb-system"
    KUBEBLOCKS_REPO_NAME: str = "kubeblocks"
    KUBEBLOCKS_REPO_URL: str = "https://apecloud.github.io/helm-charts"
    KUBEBLOCKS_CHART: str = "kubeblocks/kubeblocks"
    KUBEBLOCKS_CRDS_URL: str = (
        "https://github.com/apecloud/kubeblocks/releases/download/v0.9.2/"
        "kubeblocks_crds.yaml"
    )

    # Timeouts
    HELM_TIMEOUT: str = "10m"
    KUBEBLOCKS_TIMEOUT: str = "20m"

    # Working files
    WORKING_DOCUMENT: str = "/tmp/template.yaml"
    RENDER_OUTPUT_DIR: str = "/tmp"
    RENDER_FILE_PREFIX: str = "gras-resource-"
    RENDER_TIMESTAMP_FORMAT: str = "%Y-%m-%d-%H-%M"
    LOG_FILE: str = "/tmp/grpl_resource_deploy.log"

    # Defaults
    DEFAULT_DB_FILE_PATH: str = "/tmp/data.json"
    FILE_DATASOURCE_NAME: str = "db"
    CREDENTIAL_SECRET_SUFFIX: str = "-conn-credential"

    # GRAS names: alphanumeric with hyphens and underscores
    NAME_PATTERN: re.Pattern[str] = re.compile(r"^[a-zA-Z0-9_-]+$")

    @property
    def chart_reference(self) -> str:
        """OCI reference of the GRAS deployment chart."""
        return f"oci://{self.CHART_REGISTRY}/{self.CHART_NAME}"

    def credential_secret_name(self, release_name: str) -> str:
        """Name of the database credentials secret for a release."""
        return f"{release_name}{self.CREDENTIAL_SECRET_SUFFIX}"


class GrasPaths:
    """Path resolver for the static template files and working files."""

    def __init__(
        self,
        working_document: Path | None = None,
        render_output_dir: Path | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize GRAS paths.

        Args:
            working_document: Override for the working document location
            render_output_dir: Override for the render output directory
            templates_dir: Override for the static template directory
        """
        constants = DEFAULT_CONSTANTS
        self.working_document = working_document or Path(constants.WORKING_DOCUMENT)
        self.render_output_dir = render_output_dir or Path(
            constants.RENDER_OUTPUT_DIR
        )
        self.templates_dir = templates_dir or (
            Path(__file__).resolve().parent.parent / "gras" / "template_files"
        )

    @property
    def db_template(self) -> Path:
        """Get path to the mysql-backed base document."""
        return self.templates_dir / "db.yaml"

    @property
    def db_file_template(self) -> Path:
        """Get path to the file-backed base document."""
        return self.templates_dir / "db-file.yaml"

    @property
    def cluster_manifest(self) -> Path:
        """Get path to the database cluster manifest."""
        return self.templates_dir / "cluster.yaml"


DEFAULT_CONSTANTS = GrasConstants()
