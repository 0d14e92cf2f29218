"""Tests for the installed-version record."""

import json
from pathlib import Path

import pytest

from story_launcher.config_store import ConfigStore
from story_launcher.exceptions import ConfigSaveError

pytestmark = [pytest.mark.unit]


class TestLoad:
    """Tests for ConfigStore.load."""

    def test_missing_file_is_empty(self, tmp_path):
        assert ConfigStore(tmp_path / "config.json").load() == {}

    def test_reads_tools_mapping(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"tools": {"resolve-sync": "2.3.0"}}))

        assert ConfigStore(path).load() == {"resolve-sync": "2.3.0"}

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[]",
            '"tools"',
            '{"tools": ["resolve-sync"]}',
            "",
        ],
    )
    def test_malformed_file_is_empty(self, tmp_path, content):
        path = tmp_path / "config.json"
        path.write_text(content)

        assert ConfigStore(path).load() == {}

    def test_missing_tools_key_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"other": 1}')

        assert ConfigStore(path).load() == {}

    def test_drops_non_string_versions(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"tools": {"resolve-sync": "2.3.0", "other": 2, "x": None}})
        )

        assert ConfigStore(path).load() == {"resolve-sync": "2.3.0"}

    def test_undecodable_file_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        assert ConfigStore(path).load() == {}


class TestSave:
    """Tests for ConfigStore.save and set_version."""

    def test_writes_pretty_printed_tools_object(self, tmp_path):
        path = tmp_path / "config.json"

        ConfigStore(path).save({"resolve-sync": "2.3.0"})

        assert path.read_text(encoding="utf-8") == (
            '{\n  "tools": {\n    "resolve-sync": "2.3.0"\n  }\n}'
        )

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "config.json"

        ConfigStore(path).save({})

        assert json.loads(path.read_text()) == {"tools": {}}

    def test_overwrites_existing_record(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")
        store.save({"resolve-sync": "1.0.0", "old": "0.1"})

        store.save({"resolve-sync": "2.0.0"})

        assert store.load() == {"resolve-sync": "2.0.0"}

    def test_write_failure_raises_config_save_error(self, tmp_path, mocker):
        mocker.patch.object(Path, "write_text", side_effect=OSError("disk full"))
        store = ConfigStore(tmp_path / "config.json")

        with pytest.raises(ConfigSaveError) as exc_info:
            store.save({"resolve-sync": "2.3.0"})

        assert exc_info.value.path == str(tmp_path / "config.json")
        assert str(exc_info.value) == "Failed to save config - disk full"

    def test_set_version_keeps_other_entries(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")
        store.save({"other": "1.0.0"})

        record = store.set_version("resolve-sync", "2.3.0")

        assert record == {"other": "1.0.0", "resolve-sync": "2.3.0"}
        assert store.load() == record

    def test_set_version_repairs_corrupt_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        ConfigStore(path).set_version("resolve-sync", "2.3.0")

        assert json.loads(path.read_text()) == {"tools": {"resolve-sync": "2.3.0"}}
