"""
Tests for CLI utilities.
"""

from __future__ import annotations

import json

import pytest
import typer

from gridspine.cli.utils import load_records, read_records, write_records
from gridspine.core.result import Err, Ok


class TestReadRecords:
    def test_array_of_objects(self, users_file, users):
        assert read_records(users_file) == Ok(users)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        assert isinstance(read_records(path), Err)

    @pytest.mark.parametrize("payload", [{"id": 1}, [1, 2], "rows"])
    def test_wrong_shape(self, tmp_path, payload):
        path = tmp_path / "shape.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        result = read_records(path)
        assert isinstance(result, Err)
        assert "array of objects" in str(result.error)

    def test_missing_file(self, tmp_path):
        assert read_records(tmp_path / "absent.json").is_err()


class TestLoadRecords:
    def test_exits_on_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("nope", encoding="utf-8")
        with pytest.raises(typer.Exit) as exc_info:
            load_records(path)
        assert exc_info.value.exit_code == 1


class TestWriteRecords:
    def test_round_trip(self, tmp_path, users):
        path = tmp_path / "out.json"
        write_records(path, users)
        assert json.loads(path.read_text(encoding="utf-8")) == users
