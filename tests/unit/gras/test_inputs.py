"""Tests for input resolution from flags, encoded strings and prompts."""

import io
import re
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from src.gras.config import DatabaseMode, DeployOptions, TemplateKind
from src.gras.errors import InputError, PromptAbortedError
from src.gras.inputs import InputResolver
from src.gras.prompts import Prompter
from tests.fixtures import ScriptedPrompter


def _mysql_options(**overrides):
    values = {
        "gras_name": "shop",
        "gras_template": "db-mysql-model-based",
        "db_type": "internal",
        "database_schema": "shopdb",
        "models": "user:{'base':'Entity'}",
        "relations": "",
        "enable_gruim": False,
        "source_data": "",
    }
    values.update(overrides)
    return DeployOptions(**values)


class TestFlagsOnly:
    def test_file_template_needs_no_prompts(self):
        options = DeployOptions(
            gras_name="files",
            gras_template="db-file",
            db_file_path="/data/db.json",
            relations="",
            enable_gruim=False,
            namespace="apps",
        )

        config = InputResolver(ScriptedPrompter()).resolve(options)

        assert config.template is TemplateKind.DB_FILE
        assert config.db_mode is None
        assert config.db_file_path == "/data/db.json"
        assert config.namespace == "apps"
        assert config.source_data == ""

    def test_db_type_ignored_for_file_template(self):
        options = DeployOptions(
            gras_name="files",
            gras_template="db-file",
            db_type="internal",
            db_file_path="/d.json",
            relations="",
            enable_gruim=True,
        )

        config = InputResolver(ScriptedPrompter()).resolve(options)

        assert config.db_mode is None
        assert config.enable_gruim is True

    def test_mysql_flags(self):
        config = InputResolver(ScriptedPrompter()).resolve(_mysql_options(), render=True)

        assert config.db_mode is DatabaseMode.INTERNAL
        assert config.database_schema == "shopdb"
        assert [m.name for m in config.models] == ["user"]
        assert config.relations == []
        assert config.render is True

    def test_external_schema_comes_from_datasource(self):
        options = _mysql_options(
            db_type="external",
            database_schema=None,
            datasources="ds:{'database':'remote','host':'db.local','user':'u'}",
        )

        config = InputResolver(ScriptedPrompter()).resolve(options)

        assert config.database_schema == "remote"
        assert config.datasource.host == "db.local"
        assert config.datasource.user == "u"

    def test_invalid_template(self):
        with pytest.raises(InputError, match="Invalid GRAS template"):
            InputResolver(ScriptedPrompter()).resolve(_mysql_options(gras_template="nope"))

    def test_invalid_name(self):
        with pytest.raises(InputError, match="Invalid GRAS name"):
            InputResolver(ScriptedPrompter()).resolve(_mysql_options(gras_name="bad name!"))

    def test_undecodable_models_do_not_stop_the_run(self):
        prompter = ScriptedPrompter()

        config = InputResolver(prompter).resolve(
            _mysql_options(models="user{'type':'string'}")
        )

        assert config.models == []
        assert prompter.labels == []

    def test_malformed_model_entries_are_skipped(self):
        config = InputResolver(ScriptedPrompter()).resolve(
            _mysql_options(models="broken|user:{'base':'Entity'}")
        )

        assert [m.name for m in config.models] == ["user"]

    def test_invalid_db_type(self):
        with pytest.raises(InputError, match="Invalid database type"):
            InputResolver(ScriptedPrompter()).resolve(_mysql_options(db_type="cloud"))


class TestPrompts:
    def test_models_require_at_least_one(self):
        prompter = ScriptedPrompter(
            [
                "",  # rejected: no model yet
                "user",
                "Entity",
                "id",
                "integer",
                True,  # is ID
                True,  # generated
                "email",
                "string",
                True,  # required
                "nick",
                "string",
                False,  # not required
                "anon",
                "",  # end of properties
                "",  # end of models
            ]
        )

        config = InputResolver(prompter).resolve(_mysql_options(models=None))

        [model] = config.models
        assert model.name == "user"
        assert model.spec == {
            "base": "Entity",
            "properties": {
                "id": {"type": "integer", "id": True, "required": True, "generated": True},
                "email": {"type": "string", "required": True},
                "nick": {"type": "string", "defaultFn": "anon"},
            },
        }
        assert prompter.labels[0] == "Enter model name (at least one model is required)"
        assert "Is email the ID property?" not in prompter.labels
        assert prompter.answers == []

    def test_relations_loop_until_empty_name(self):
        prompter = ScriptedPrompter(["orders", "hasMany", "user", "order", "userId", ""])

        config = InputResolver(prompter).resolve(_mysql_options(relations=None))

        [relation] = config.relations
        assert relation.to_document() == {
            "name": "orders",
            "spec": {
                "relationType": "hasMany",
                "relationName": "orders",
                "sourceModel": "user",
                "destinationModel": "order",
                "foreignKeyName": "userId",
            },
        }

    def test_empty_relations_flag_skips_prompts(self):
        prompter = ScriptedPrompter()

        InputResolver(prompter).resolve(_mysql_options(relations=""))

        assert prompter.labels == []

    def test_automatic_discovery(self):
        options = _mysql_options(
            gras_template="db-mysql-discovery-based", models=None, auto_discovery=True
        )

        config = InputResolver(ScriptedPrompter()).resolve(options)

        [discovery] = config.discoveries
        assert discovery.to_document() == {
            "name": "shopdb",
            "spec": {
                "all": True,
                "disableCamelCase": False,
                "schema": "shopdb",
                "dataSource": "shopdb",
            },
        }

    def test_prompted_discovery(self):
        prompter = ScriptedPrompter(
            ["No", "inventory", "No", "users,orders", "Yes", "/out", "Yes", "No"]
        )
        options = _mysql_options(gras_template="db-mysql-discovery-based", models=None)

        config = InputResolver(prompter).resolve(options)

        [discovery] = config.discoveries
        assert discovery.name == "inventory"
        assert discovery.spec == {
            "all": False,
            "views": False,
            "relations": True,
            "optionalId": True,
            "disableCamelCase": False,
            "schema": "shopdb",
            "models": "users,orders",
            "outDir": "/out",
            "dataSource": "shopdb",
        }

    def test_prompted_external_datasource(self):
        prompter = ScriptedPrompter(["remote", "db.local", "3306", "root", "pw", ""])
        options = _mysql_options(db_type="external", database_schema=None)

        config = InputResolver(prompter).resolve(options)

        assert config.database_schema == "remote"
        assert config.datasource.secret_data() == {
            "host": "db.local",
            "port": "3306",
            "username": "root",
            "password": "pw",
        }
        assert config.datasource.url == ""

    def test_gruim_and_source_data_prompts(self):
        prompter = ScriptedPrompter(["Yes", "https://example.com/seed.sql"])
        options = _mysql_options(enable_gruim=None, source_data=None)

        config = InputResolver(prompter).resolve(options)

        assert config.enable_gruim is True
        assert config.source_data == "https://example.com/seed.sql"

    def test_closed_input_aborts(self):
        with pytest.raises(PromptAbortedError):
            InputResolver(ScriptedPrompter()).resolve(DeployOptions())


class TestPrompter:
    @pytest.mark.parametrize("error", [EOFError, KeyboardInterrupt])
    def test_interrupted_prompt_raises_aborted(self, monkeypatch, error):
        monkeypatch.setattr("src.gras.prompts.Prompt.ask", MagicMock(side_effect=error))
        prompter = Prompter(Console(file=io.StringIO()))

        with pytest.raises(PromptAbortedError) as excinfo:
            prompter.ask("Enter GRAS name")

        assert "Enter GRAS name" in excinfo.value.details

    def test_choose_without_choices(self):
        prompter = Prompter(Console(file=io.StringIO()))

        with pytest.raises(PromptAbortedError):
            prompter.choose("Select namespace", [])

    def test_ask_matching_repeats_until_valid(self, monkeypatch):
        monkeypatch.setattr(
            "src.gras.prompts.Prompt.ask", MagicMock(side_effect=["bad name", "good-name"])
        )
        prompter = Prompter(Console(file=io.StringIO()))

        answer = prompter.ask_matching("Name", re.compile(r"^[a-z-]+$"), "no")

        assert answer == "good-name"
