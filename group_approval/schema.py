"""JSON Schema validation infrastructure.

Provides schema validation for contract messages and the persisted state:
- Automatic schema resolution via $ref (shared uint64 definition)
- Cross-reference registry for all bundled schemas
- Cached validators for performance
- Clear error reporting
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, List

from jsonschema import Draft202012Validator
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from group_approval.core import SCHEMAS_DIR, load_json


INSTANTIATE_MSG_SCHEMA = "instantiate-msg.schema.json"
EXECUTE_MSG_SCHEMA = "execute-msg.schema.json"
QUERY_MSG_SCHEMA = "query-msg.schema.json"
MIGRATE_MSG_SCHEMA = "migrate-msg.schema.json"
CONTRACT_STATE_SCHEMA = "contract-state.schema.json"


@lru_cache(maxsize=1)
def _schema_registry(schemas_dir: Path = SCHEMAS_DIR) -> Registry:
    """Build a schema registry for all bundled schemas.

    This enables $ref resolution across the schema files.
    Cached for performance.
    """
    if not schemas_dir.is_dir():
        return Registry()

    resources = []
    for schema_path in sorted(schemas_dir.glob("*.schema.json")):
        schema = load_json(schema_path)
        if not isinstance(schema, dict):
            continue

        # Use $id from schema, or derive from filename
        schema_id = schema.get("$id", "") or f"urn:group-approval:schema:{schema_path.name}"
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        resources.append((schema_id, resource))

    return Registry().with_resources(resources)


@lru_cache(maxsize=None)
def schema_validator(
    schema_name: str,
    schemas_dir: Path = SCHEMAS_DIR,
) -> Draft202012Validator:
    """Create a validator for a bundled schema file.

    Args:
        schema_name: File name of the schema under ``schemas_dir``
        schemas_dir: Directory holding the schema corpus

    Returns:
        A configured Draft202012Validator
    """
    schema = load_json(schemas_dir / schema_name)
    registry = _schema_registry(schemas_dir)
    return Draft202012Validator(schema, registry=registry)


def validate_against_schema(
    obj: Any,
    schema_name: str,
    schemas_dir: Path = SCHEMAS_DIR,
) -> List[str]:
    """Validate an object against a schema.

    Returns:
        List of validation error messages (empty if valid)
    """
    validator = schema_validator(schema_name, schemas_dir)
    return [
        f"{error.json_path}: {error.message}"
        for error in sorted(validator.iter_errors(obj), key=lambda e: e.json_path)
    ]
