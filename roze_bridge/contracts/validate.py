"""Contract document checker.

Verifies that every ``schemas/*.json`` file is a valid Draft-07 JSON Schema
and that ``openapi.yaml`` looks like an OpenAPI document with paths. Intended
for CI and for authors editing the shared contract.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

from .store import BUNDLED_CONTRACTS_DIR, OPENAPI_FILE, SCHEMAS_DIR


@dataclass
class CheckResult:
    """Outcome of checking one contract document."""

    file: Path
    valid: bool
    errors: List[str] = field(default_factory=list)


def check_json_schema(path: Path) -> CheckResult:
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return CheckResult(path, False, [f"Failed to parse JSON: {e}"])
    validator = Draft7Validator(Draft7Validator.META_SCHEMA)
    errors = [
        f"{'/'.join(str(p) for p in err.absolute_path) or 'root'}: {err.message}"
        for err in validator.iter_errors(schema)
    ]
    return CheckResult(path, not errors, errors)


def check_openapi(path: Path) -> CheckResult:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        return CheckResult(path, False, [f"Failed to read file: {e}"])
    if not isinstance(document, dict) or not ({"openapi", "swagger"} & set(document)):
        return CheckResult(path, False, ["File does not appear to be an OpenAPI specification"])
    if not isinstance(document.get("paths"), dict) or not document["paths"]:
        return CheckResult(path, False, ["OpenAPI spec must contain paths"])
    return CheckResult(path, True)


def check_contracts(contracts_dir: Path) -> List[CheckResult]:
    """Check every schema and the OpenAPI document under ``contracts_dir``."""
    results: List[CheckResult] = []
    schemas_dir = contracts_dir / SCHEMAS_DIR
    if schemas_dir.is_dir():
        for schema_path in sorted(schemas_dir.glob("*.json")):
            results.append(check_json_schema(schema_path))
    openapi_path = contracts_dir / OPENAPI_FILE
    if openapi_path.exists():
        results.append(check_openapi(openapi_path))
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate the shared OpenAPI and JSON Schema contracts")
    parser.add_argument(
        "contracts_dir",
        nargs="?",
        type=Path,
        default=BUNDLED_CONTRACTS_DIR,
        help="Directory containing openapi.yaml and schemas/ (defaults to the bundled contracts)",
    )
    args = parser.parse_args(argv)

    results = check_contracts(args.contracts_dir)
    if not results:
        print(f"No contract documents found under {args.contracts_dir}")
        return 1

    has_errors = False
    for result in results:
        print(f"{'OK  ' if result.valid else 'FAIL'} {result.file}")
        if not result.valid:
            has_errors = True
            for error in result.errors:
                print(f"     - {error}")

    if has_errors:
        print("Schema validation failed")
        return 1
    print("All schemas and contracts are valid")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
