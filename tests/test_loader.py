"""
Tests for loading trees from YAML and JSON descriptions.
"""

import json

import pytest
import yaml

from attachfs import AFileSystem, RemoteFile, VFile
from attachfs.loader import load_tree, tree_from_literal
from attachfs.vfs.base import DirectoryNode, SlotSequence


TREE_YAML = """
data:
  notes:
    - first draft
    - second draft
    - null
  table:
    "@versions":
      - {data: "a,b\\n1,2\\n", content_type: text/csv}
      - {url: "https://files.example.com/t.csv", name: t.csv}
    "@labels": {release: 1}
    "@metadata": {owner: ops}
test: {}
"""


@pytest.fixture
def tree_file(tmp_path):
    path = tmp_path / "tree.yaml"
    path.write_text(TREE_YAML)
    return path


class TestLoadTree:
    """Test reading description files."""

    def test_structure(self, tree_file):
        tree = load_tree(tree_file)
        assert isinstance(tree, DirectoryNode)
        assert isinstance(tree["data"]["notes"], SlotSequence)
        assert tree["test"] == {}

    def test_scalars_become_text_files(self, tree_file):
        notes = load_tree(tree_file)["data"]["notes"]
        assert len(notes) == 3
        assert isinstance(notes.slots[0], VFile)
        assert notes.slots[0].name == "notes"
        assert notes.slots[2] is None

    def test_extended_entries(self, tree_file):
        table = load_tree(tree_file)["data"]["table"]
        local, remote = table.slots
        assert local.content_type == "text/csv"
        assert isinstance(remote, RemoteFile)
        assert remote.name == "t.csv"
        assert table.labels == {"release": local}
        assert table.metadata == {"name": "table", "owner": "ops"}

    def test_json_description(self, tmp_path):
        path = tmp_path / "tree.json"
        path.write_text(json.dumps({"a": {"b": ["x"]}}))
        assert isinstance(load_tree(path)["a"]["b"].slots[0], VFile)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_tree(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_tree(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_tree(path)

    @pytest.mark.asyncio
    async def test_loaded_tree_is_usable(self, tree_file):
        fs = AFileSystem(load_tree(tree_file), read_only=True)
        assert await fs.find("/data/notes@1").text() == "first draft"
        assert await fs.find("/data/notes@3") is None
        assert await fs.find("/data/table@release").csv(typed=True) == [{"a": 1, "b": 2}]


class TestValidation:
    """Test rejecting malformed descriptions."""

    @pytest.mark.parametrize("data", [
        {"a": "scalar"},
        {"a": {"@versions": [{"neither": 1}]}},
        {"a": {"@versions": ["x"], "@labels": {"2": 1}}},
        {"a": {"@versions": ["x"], "@labels": {"latest": 1}}},
        {"a": {"@versions": ["x"], "@labels": {"release": 5}}},
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            tree_from_literal(data)

    def test_root_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            tree_from_literal(["x"])
