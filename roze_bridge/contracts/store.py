"""Contract store.

Holds the raw OpenAPI document and the compiled JSON Schemas shared by every
client of the bridge. Documents are loaded once at startup; any missing or
unparseable document is a fatal startup error. The store is read-only after
construction and safe to share between concurrent dispatches.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from roze_bridge.core.errors import FatalStartupError, UnknownContractError

from .models import ValidatedPayload, ValidationResult
from .validation import collect_errors, compile_validator

logger = logging.getLogger(__name__)

CONTRACT_NAMES: Tuple[str, ...] = ("order.create", "subscribe.create")
OPENAPI_FILE = "openapi.yaml"
SCHEMAS_DIR = "schemas"
BUNDLED_CONTRACTS_DIR = Path(__file__).resolve().parent / "documents"


class ContractStore:
    def __init__(self, openapi_text: str, schemas: Mapping[str, Dict[str, Any]]) -> None:
        self._openapi_text = openapi_text
        self._schemas: Dict[str, Dict[str, Any]] = {}
        self._validators: Dict[str, Draft7Validator] = {}
        for name, schema in schemas.items():
            try:
                Draft7Validator.check_schema(schema)
            except SchemaError as e:
                raise FatalStartupError(f"Contract '{name}' is not a valid JSON Schema: {e.message}") from e
            self._schemas[name] = copy.deepcopy(schema)
            self._validators[name] = compile_validator(self._schemas[name])

    @classmethod
    def load(
        cls,
        contracts_dir: Optional[Path] = None,
        *,
        names: Sequence[str] = CONTRACT_NAMES,
    ) -> "ContractStore":
        """Load ``openapi.yaml`` and ``schemas/<name>.json`` from a directory.

        Args:
            contracts_dir: Directory with the contract documents. The
                documents bundled with the package are used when None.
            names: Contract names to load, one schema file each.

        Returns:
            A ready ``ContractStore``.

        Raises:
            FatalStartupError: If a document is missing or does not parse.
        """
        root = Path(contracts_dir) if contracts_dir is not None else BUNDLED_CONTRACTS_DIR
        logger.debug("ContractStore.load: reading contracts from %s", root)

        openapi_path = root / OPENAPI_FILE
        openapi_text = _read_text(openapi_path)
        try:
            document = yaml.safe_load(openapi_text)
        except yaml.YAMLError as e:
            raise FatalStartupError(f"Failed to parse OpenAPI contract {openapi_path}: {e}") from e
        if not isinstance(document, dict):
            raise FatalStartupError(f"OpenAPI contract {openapi_path} must be a YAML mapping")

        schemas: Dict[str, Dict[str, Any]] = {}
        for name in names:
            schema_path = root / SCHEMAS_DIR / f"{name}.json"
            try:
                schema = json.loads(_read_text(schema_path))
            except json.JSONDecodeError as e:
                raise FatalStartupError(f"Failed to parse JSON Schema {schema_path}: {e}") from e
            if not isinstance(schema, dict):
                raise FatalStartupError(f"JSON Schema {schema_path} must be a JSON object")
            schemas[name] = schema

        store = cls(openapi_text, schemas)
        logger.info("Loaded OpenAPI contract and %d schemas: %s", len(schemas), ", ".join(schemas))
        return store

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._schemas)

    def read_openapi(self) -> str:
        """The OpenAPI document exactly as it was read from disk."""
        return self._openapi_text

    def get_schema(self, name: str) -> Dict[str, Any]:
        if name not in self._schemas:
            raise UnknownContractError(name, self.names)
        return copy.deepcopy(self._schemas[name])

    def validate(self, name: str, payload: Any) -> ValidationResult:
        """Validate ``payload`` against contract ``name``, reporting every violation.

        Raises:
            UnknownContractError: If ``name`` is not a registered contract.
        """
        validator = self._validators.get(name)
        if validator is None:
            raise UnknownContractError(name, self.names)
        errors = collect_errors(validator, payload)
        if errors:
            logger.debug("ContractStore.validate: %s failed with %d errors", name, len(errors))
            return ValidationResult(valid=False, errors=errors)
        return ValidationResult(valid=True, payload=ValidatedPayload(contract=name, data=payload))


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise FatalStartupError(f"Failed to read contract document {path}: {e}") from e
