"""Environment variable substitution for the assembled document.

Runs once, after every structural change, right before the document is
handed to Helm or written as a manifest.

Supported placeholders:
- `${VAR}` and `$VAR`: replaced by the environment value, empty if unset
- `$(var)`: replaced only when `var` is set; otherwise left untouched so
  Kubernetes resolves it from the mounted secret when the pod starts
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from .document import DocumentStore

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
_PLACEHOLDER = re.compile(
    rf"\$\{{(?P<braced>{_NAME})\}}"
    rf"|\$\((?P<deferred>{_NAME})\)"
    rf"|\$(?P<bare>{_NAME})"
)


def load_env_file(path: Path | None = None) -> bool:
    """Load a `.env` file without overriding variables already set.

    Returns:
        True if a file was found and loaded
    """
    env_path = path or Path.cwd() / ".env"
    if not env_path.is_file():
        return False
    logger.debug(f"Loading environment from {env_path}")
    return load_dotenv(env_path, override=False)


def substitute_env_vars(
    text: str,
    extra: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Substitute environment variable placeholders in text.

    Args:
        text: Serialized document
        extra: Values that take precedence over the environment
        environ: Environment to read (defaults to os.environ)
    """
    env: dict[str, str] = dict(os.environ if environ is None else environ)
    if extra:
        env.update(extra)

    def replacer(match: re.Match[str]) -> str:
        deferred = match.group("deferred")
        if deferred is not None:
            return env.get(deferred, match.group(0))
        name = match.group("braced") or match.group("bare")
        if name not in env:
            logger.debug(f"Environment variable {name} is not set, substituting ''")
        return env.get(name, "")

    return _PLACEHOLDER.sub(replacer, text)


def substitute_document(
    store: DocumentStore,
    extra: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Substitute placeholders in the working document in place.

    Returns:
        The substituted document text
    """
    expanded = substitute_env_vars(store.read_text(), extra, environ)
    store.write_text(expanded)
    return expanded
