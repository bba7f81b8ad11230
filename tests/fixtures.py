"""Shared test doubles and fixtures.

- ScriptedPrompter answers prompts from a list instead of a terminal
- FakeKubernetesController keeps namespaces, secrets and custom resources
  in memory and records every call
"""

from __future__ import annotations

import copy
import io
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from src.cli.shared.console import CLIConsole
from src.gras.errors import PromptAbortedError
from src.gras.prompts import Prompter
from src.infra.constants import GrasPaths
from src.infra.k8s.controller import (
    CommandResult,
    CustomResource,
    KubernetesController,
    KubernetesControllerSync,
    KubernetesError,
    ResourceExistsError,
    ResourceNotFoundError,
    ResourceRef,
)

MUTATING_CALLS = frozenset(
    {
        "create_namespace",
        "create_secret",
        "update_secret",
        "create_custom_resource",
        "update_custom_resource",
        "apply_manifest",
    }
)


def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class ScriptedPrompter(Prompter):
    """Prompter that returns queued answers in order.

    Running out of answers behaves like a closed input stream.
    """

    def __init__(self, answers: Iterable[Any] = ()) -> None:
        super().__init__(quiet_console())
        self.answers = list(answers)
        self.labels: list[str] = []

    def _next(self, label: str) -> Any:
        self.labels.append(label)
        if not self.answers:
            raise PromptAbortedError("Prompt cancelled", details=f"No answer for: {label}")
        return self.answers.pop(0)

    def ask(self, label: str, *, default: str = "", password: bool = False) -> str:
        answer = self._next(label)
        return str(answer).strip() or default

    def choose(self, label: str, choices: list[str], *, default: str | None = None) -> str:
        answer = self._next(label)
        assert answer in choices, f"{answer!r} is not one of {choices} for {label!r}"
        return answer

    def confirm(self, label: str, *, default: bool = False) -> bool:
        answer = self._next(label)
        assert isinstance(answer, bool), f"expected a bool for {label!r}"
        return answer


class FakeKubernetesController(KubernetesController):
    """In-memory KubernetesController."""

    def __init__(self, namespaces: Iterable[str] = ("default",)) -> None:
        self.namespaces: set[str] = set(namespaces)
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}
        self.resources: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.applied: list[str] = []
        self._version = 0
        self.fail_on: dict[str, KubernetesError] = {}

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.fail_on:
            raise self.fail_on[method]

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    @property
    def mutating_calls(self) -> list[str]:
        return [name for name, _ in self.calls if name in MUTATING_CALLS]

    async def list_namespaces(self) -> list[str]:
        self._record("list_namespaces")
        return sorted(self.namespaces)

    async def namespace_exists(self, namespace: str) -> bool:
        self._record("namespace_exists", namespace)
        return namespace in self.namespaces

    async def create_namespace(self, namespace: str) -> None:
        self._record("create_namespace", namespace)
        if namespace in self.namespaces:
            raise ResourceExistsError(f"namespace {namespace} already exists", 409)
        self.namespaces.add(namespace)

    async def create_secret(self, name: str, namespace: str, data: dict[str, str]) -> None:
        self._record("create_secret", name, namespace)
        if (namespace, name) in self.secrets:
            raise ResourceExistsError(f"secret {name} already exists", 409)
        self.secrets[(namespace, name)] = dict(data)

    async def update_secret(self, name: str, namespace: str, data: dict[str, str]) -> None:
        self._record("update_secret", name, namespace)
        if (namespace, name) not in self.secrets:
            raise ResourceNotFoundError(f"secret {name} not found", 404)
        self.secrets[(namespace, name)] = dict(data)

    async def create_custom_resource(self, manifest: dict[str, Any]) -> None:
        metadata = manifest["metadata"]
        key = (metadata["namespace"], metadata["name"])
        self._record("create_custom_resource", key)
        if key in self.resources:
            raise ResourceExistsError(f"{manifest['kind']} {key[1]} already exists", 409)
        stored = copy.deepcopy(manifest)
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.resources[key] = stored

    async def get_custom_resource(self, ref: ResourceRef) -> CustomResource:
        key = (ref.namespace, ref.name)
        self._record("get_custom_resource", key)
        if key not in self.resources:
            raise ResourceNotFoundError(f"{ref.kind} {ref.name} not found", 404)
        stored = self.resources[key]
        return CustomResource(
            ref=ref,
            resource_version=stored["metadata"]["resourceVersion"],
            spec=copy.deepcopy(stored.get("spec", {})),
            raw=copy.deepcopy(stored),
        )

    async def update_custom_resource(self, manifest: dict[str, Any]) -> None:
        metadata = manifest["metadata"]
        key = (metadata["namespace"], metadata["name"])
        self._record("update_custom_resource", key)
        if key not in self.resources:
            raise ResourceNotFoundError(f"{manifest['kind']} {key[1]} not found", 404)
        current = self.resources[key]["metadata"]["resourceVersion"]
        if metadata.get("resourceVersion") != current:
            raise KubernetesError("the object has been modified", 409)
        stored = copy.deepcopy(manifest)
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.resources[key] = stored

    async def apply_manifest(self, source: str) -> CommandResult:
        self._record("apply_manifest", source)
        self.applied.append(source)
        return CommandResult(success=True, stdout=f"applied {source}")


@pytest.fixture
def fake_controller() -> FakeKubernetesController:
    return FakeKubernetesController()


@pytest.fixture
def sync_controller(fake_controller: FakeKubernetesController) -> KubernetesControllerSync:
    return KubernetesControllerSync(fake_controller)


@pytest.fixture
def test_console() -> CLIConsole:
    return CLIConsole(quiet_console())


@pytest.fixture
def gras_paths(tmp_path: Path) -> GrasPaths:
    return GrasPaths(
        working_document=tmp_path / "template.yaml",
        render_output_dir=tmp_path / "rendered",
    )
