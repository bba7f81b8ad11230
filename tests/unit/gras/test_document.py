"""Tests for the working document store."""

import pytest

from src.gras.document import Document, DocumentStore, normalize_keys
from src.gras.errors import DocumentError


def test_normalize_keys_converts_nested_keys():
    data = {1: {"a": [{True: "x"}]}, "b": (1, 2)}

    assert normalize_keys(data) == {"1": {"a": [{"True": "x"}]}, "b": [1, 2]}


class TestDocument:
    def test_grapi_created_when_missing(self):
        document = Document({})

        document.grapi["models"] = []

        assert document.data == {"grapi": {"models": []}}

    def test_wrong_typed_grapi_is_reset(self):
        document = Document({"grapi": ["not", "a", "mapping"]})

        assert document.grapi == {}
        assert document.data["grapi"] == {}

    def test_remove_missing_section_is_noop(self):
        document = Document({"grapi": {}})

        document.remove("gruim")

        assert not document.has("gruim")


class TestDocumentStore:
    def test_seed_copies_template(self, tmp_path):
        template = tmp_path / "base.yaml"
        template.write_text("grapi:\n  models: []\n")
        store = DocumentStore(tmp_path / "work" / "template.yaml")

        document = store.seed(template)

        assert document.grapi == {"models": []}
        assert store.path.read_text() == template.read_text()

    def test_seed_missing_template(self, tmp_path):
        store = DocumentStore(tmp_path / "template.yaml")

        with pytest.raises(DocumentError, match="Failed to read template file"):
            store.seed(tmp_path / "missing.yaml")

    def test_read_empty_file(self, tmp_path):
        store = DocumentStore(tmp_path / "template.yaml")
        store.write_text("")

        assert store.read().data == {}

    def test_read_non_mapping(self, tmp_path):
        store = DocumentStore(tmp_path / "template.yaml")
        store.write_text("- a\n- b\n")

        with pytest.raises(DocumentError, match="not a mapping"):
            store.read()

    def test_read_invalid_yaml(self, tmp_path):
        store = DocumentStore(tmp_path / "template.yaml")
        store.write_text("grapi: [unclosed\n")

        with pytest.raises(DocumentError, match="Failed to parse"):
            store.read()

    def test_write_keeps_key_order_and_normalizes(self, tmp_path):
        store = DocumentStore(tmp_path / "template.yaml")

        store.write(Document({"grapi": {"z": 1, "a": 2}, 3: "x"}))

        assert store.read_text() == "grapi:\n  z: 1\n  a: 2\n'3': x\n"
