"""Tests for Helm command construction and release parsing."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.cli.deployment.shell_commands import CommandResult, HelmCommandError
from src.cli.deployment.shell_commands.helm import HelmCommands


class TestHelmInstall:
    """Tests for the install command."""

    @pytest.fixture
    def mock_runner(self):
        runner = MagicMock()
        runner.run.return_value = CommandResult(success=True, stdout="", stderr="")
        runner.run_streaming.return_value = CommandResult(success=True)
        return runner

    def test_install_basic(self, mock_runner):
        helm = HelmCommands(mock_runner)

        helm.install("shop", Path("/tmp/gras-deploy"), "apps", value_files=[Path("/v.yaml")])

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:3] == ["helm", "install", "shop"]
        assert cmd[3] == "/tmp/gras-deploy"
        assert cmd[cmd.index("--namespace") + 1] == "apps"
        assert cmd[cmd.index("--timeout") + 1] == "10m"
        assert cmd[cmd.index("-f") + 1] == "/v.yaml"
        assert "--wait" not in cmd
        assert "--kube-context" not in cmd
        assert "--create-namespace" not in cmd

    def test_install_wait_and_context(self, mock_runner):
        helm = HelmCommands(mock_runner, kube_context="prod")

        helm.install("kubeblocks", "kubeblocks/kubeblocks", "kb-system", wait=True, timeout="20m")

        cmd = mock_runner.run.call_args[0][0]
        assert "--wait" in cmd
        assert cmd[cmd.index("--timeout") + 1] == "20m"
        assert cmd[-2:] == ["--kube-context", "prod"]

    def test_install_streams_output(self, mock_runner):
        lines = []
        helm = HelmCommands(mock_runner)

        helm.install("shop", "chart", "apps", on_output=lines.append)

        mock_runner.run.assert_not_called()
        assert mock_runner.run_streaming.call_args.kwargs["on_output"] == lines.append


class TestHelmReleases:
    """Tests for listing and finding releases."""

    @pytest.fixture
    def mock_runner(self):
        return MagicMock()

    def _releases(self, *releases):
        return CommandResult(success=True, stdout=json.dumps(list(releases)))

    def test_list_in_namespace(self, mock_runner):
        mock_runner.run.return_value = self._releases(
            {"name": "shop", "namespace": "apps", "status": "deployed", "revision": 2}
        )
        helm = HelmCommands(mock_runner)

        [release] = helm.list_releases("apps")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:5] == ["helm", "list", "--all", "-o", "json"]
        assert cmd[cmd.index("-n") + 1] == "apps"
        assert release.name == "shop"
        assert release.revision == "2"
        assert not release.is_failed

    def test_list_all_namespaces(self, mock_runner):
        mock_runner.run.return_value = self._releases()
        helm = HelmCommands(mock_runner)

        assert helm.list_releases(all_namespaces=True) == []

        cmd = mock_runner.run.call_args[0][0]
        assert "--all-namespaces" in cmd
        assert "-n" not in cmd

    def test_empty_output(self, mock_runner):
        mock_runner.run.return_value = CommandResult(success=True, stdout="")

        assert HelmCommands(mock_runner).list_releases("apps") == []

    def test_failed_list_raises(self, mock_runner):
        mock_runner.run.return_value = CommandResult(success=False, stderr="unreachable")

        with pytest.raises(HelmCommandError):
            HelmCommands(mock_runner).list_releases("apps")

    def test_invalid_json_raises(self, mock_runner):
        mock_runner.run.return_value = CommandResult(success=True, stdout="not json")

        with pytest.raises(HelmCommandError):
            HelmCommands(mock_runner).list_releases("apps")

    def test_find_release_reports_failed_status(self, mock_runner):
        mock_runner.run.return_value = self._releases(
            {"name": "other", "namespace": "kb-system", "status": "deployed", "revision": "1"},
            {"name": "kubeblocks", "namespace": "kb-system", "status": "failed", "revision": "3"},
        )

        release = HelmCommands(mock_runner).find_release("kubeblocks", all_namespaces=True)

        assert release.namespace == "kb-system"
        assert release.is_failed

    def test_find_release_missing(self, mock_runner):
        mock_runner.run.return_value = self._releases()

        assert HelmCommands(mock_runner).find_release("shop", "apps") is None


class TestHelmMisc:
    """Tests for uninstall, pull, show and repo commands."""

    @pytest.fixture
    def mock_runner(self):
        runner = MagicMock()
        runner.run.return_value = CommandResult(success=True)
        return runner

    def test_uninstall(self, mock_runner):
        HelmCommands(mock_runner, kube_context="dev").uninstall("shop", "apps")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "helm", "uninstall", "shop", "-n", "apps", "--wait", "--kube-context", "dev"
        ]

    def test_pull(self, mock_runner):
        HelmCommands(mock_runner).pull("oci://registry/chart", Path("/tmp/x"))

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:3] == ["helm", "pull", "oci://registry/chart"]
        assert cmd[cmd.index("--destination") + 1] == "/tmp/x"
        assert "--untar" in cmd
        assert "--version" not in cmd

    def test_show_chart(self, mock_runner):
        HelmCommands(mock_runner).show_chart(Path("/tmp/x/gras-deploy"))

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == ["helm", "show", "chart", "/tmp/x/gras-deploy"]

    def test_repo_add_forces_update(self, mock_runner):
        HelmCommands(mock_runner, kube_context="dev").repo_add("kubeblocks", "https://charts")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:5] == ["helm", "repo", "add", "kubeblocks", "https://charts"]
        assert "--force-update" in cmd
        assert "--kube-context" not in cmd
