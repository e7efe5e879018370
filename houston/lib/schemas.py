"""
Schema registry for workspace documents.

Loads every *.schema.json under a schema directory and validates documents
by schema key. Keys are the schema path relative to its directory without
the .schema.json suffix, e.g. "ticket.story" or "sprint.scope".

Registries are cached per schema directory for the life of the process.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".schema.json"


class SchemaRegistryError(Exception):
    """Schema directory or schema file could not be loaded."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message + (f" ({path})" if path else ""))


class UnknownSchemaError(KeyError):
    """No schema is registered under the requested key."""

    def __init__(self, schema_key: str):
        self.schema_key = schema_key
        super().__init__(schema_key)


@dataclass
class SchemaError:
    """A single schema violation."""
    path: str  # JSON pointer into the document, "/" for the root
    message: str
    params: dict = field(default_factory=dict)


@dataclass
class SchemaValidationResult:
    valid: bool
    errors: list[SchemaError] = field(default_factory=list)


def _pointer(parts) -> str:
    return "/" + "/".join(str(p) for p in parts) if parts else "/"


class SchemaRegistry:
    """Compiled validators keyed by schema name.

    Schemas from the workspace directory are loaded first; bundled schemas
    only fill in keys the workspace does not define.
    """

    def __init__(self, schema_dir: Path, fallback_dirs: list[Path] | None = None):
        self.schema_dir = Path(schema_dir)
        if not self.schema_dir.is_dir():
            raise SchemaRegistryError("Schema directory not found", self.schema_dir)

        self._validators: dict[str, Any] = {}
        self._load_dir(self.schema_dir)
        for extra in fallback_dirs or []:
            if Path(extra).is_dir() and Path(extra).resolve() != self.schema_dir.resolve():
                self._load_dir(Path(extra))

        logger.debug(f"[SCHEMA] Loaded {len(self._validators)} schema(s) from {self.schema_dir}")

    def _load_dir(self, directory: Path) -> None:
        for schema_path in sorted(directory.rglob(f"*{SCHEMA_SUFFIX}")):
            relative = schema_path.relative_to(directory).as_posix()
            key = relative[: -len(SCHEMA_SUFFIX)]
            if key in self._validators:
                continue

            try:
                schema = json.loads(schema_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise SchemaRegistryError(f"Failed to parse schema {relative}: {e}", schema_path) from None

            validator_cls = jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)
            try:
                validator_cls.check_schema(schema)
            except jsonschema.SchemaError as e:
                raise SchemaRegistryError(f"Invalid schema {relative}: {e.message}", schema_path) from None

            self._validators[key] = validator_cls(schema)

    def has(self, schema_key: str) -> bool:
        return schema_key in self._validators

    def validate(self, schema_key: str, data: Any) -> SchemaValidationResult:
        """
        Validate data against a named schema, collecting every error.

        Raises:
            UnknownSchemaError: if no schema is registered under schema_key
        """
        validator = self._validators.get(schema_key)
        if validator is None:
            raise UnknownSchemaError(schema_key)

        errors = [
            SchemaError(
                path=_pointer(e.absolute_path),
                message=e.message,
                params={"validator": e.validator, "schema_path": _pointer(e.absolute_schema_path)},
            )
            for e in validator.iter_errors(data)
        ]
        errors.sort(key=lambda err: (err.path, err.message))
        return SchemaValidationResult(valid=not errors, errors=errors)


# Cache of constructed registries, one per schema directory
_registry_cache: dict[Path, SchemaRegistry] = {}
_registry_lock = threading.Lock()


def get_registry(schema_dir: Path, fallback_dirs: list[Path] | None = None) -> SchemaRegistry:
    """Return the process-wide registry for schema_dir, building it once."""
    key = Path(schema_dir).resolve()
    with _registry_lock:
        registry = _registry_cache.get(key)
        if registry is None:
            registry = SchemaRegistry(key, fallback_dirs)
            _registry_cache[key] = registry
        return registry


def clear_registry_cache() -> None:
    with _registry_lock:
        _registry_cache.clear()
