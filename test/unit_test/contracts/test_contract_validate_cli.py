"""Unit tests for the ``roze-bridge-validate-contracts`` command."""

import json
from pathlib import Path

from roze_bridge.contracts.validate import check_contracts, check_json_schema, check_openapi, main


def test_bundled_contracts_are_valid(capsys):
    assert main([]) == 0

    out = capsys.readouterr().out
    assert "OK   " in out
    assert "FAIL" not in out
    assert "All schemas and contracts are valid" in out


def test_invalid_schema_fails(tmp_path: Path, capsys):
    (tmp_path / "schemas").mkdir()
    (tmp_path / "schemas" / "broken.json").write_text(json.dumps({"type": 12}))
    (tmp_path / "openapi.yaml").write_text("openapi: 3.0.3\npaths:\n  /healthz: {}\n")

    assert main([str(tmp_path)]) == 1

    out = capsys.readouterr().out
    assert "FAIL" in out
    assert "Schema validation failed" in out


def test_empty_directory_fails(tmp_path: Path, capsys):
    assert main([str(tmp_path)]) == 1
    assert "No contract documents found" in capsys.readouterr().out


def test_check_json_schema_reports_parse_errors(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text("{")

    result = check_json_schema(path)

    assert result.valid is False
    assert result.errors[0].startswith("Failed to parse JSON")


def test_check_openapi_requires_version_key_and_paths(tmp_path: Path):
    no_version = tmp_path / "a.yaml"
    no_version.write_text("paths:\n  /x: {}\n")
    no_paths = tmp_path / "b.yaml"
    no_paths.write_text("openapi: 3.0.3\npaths: {}\n")

    assert check_openapi(no_version).errors == ["File does not appear to be an OpenAPI specification"]
    assert check_openapi(no_paths).errors == ["OpenAPI spec must contain paths"]


def test_check_contracts_lists_schemas_then_openapi(tmp_path: Path):
    (tmp_path / "schemas").mkdir()
    (tmp_path / "schemas" / "a.json").write_text("{}")
    (tmp_path / "openapi.yaml").write_text("openapi: 3.0.3\npaths:\n  /x: {}\n")

    results = check_contracts(tmp_path)

    assert [r.file.name for r in results] == ["a.json", "openapi.yaml"]
    assert all(r.valid for r in results)
