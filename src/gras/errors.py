"""Error types raised by GRAS synthesis and deployment."""

from __future__ import annotations


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def with_note(self, note: str) -> DeploymentError:
        """Append a line to the details, keeping the error type."""
        self.details = f"{self.details}\n\n{note}" if self.details else note
        return self


class InputError(DeploymentError):
    """Raised when user input fails validation."""


class PromptAbortedError(InputError):
    """Raised when an interactive prompt is interrupted or its input stream closes."""


class DocumentError(DeploymentError):
    """Raised when the working document cannot be read, parsed or written."""


class PipelineOrderError(DeploymentError):
    """Raised when an assembly stage reads a section no earlier stage writes."""


class ProvisioningError(DeploymentError):
    """Raised when a namespace, secret or database resource cannot be written."""


class ReleaseError(DeploymentError):
    """Raised when listing, removing, fetching or installing the Helm release fails."""
