"""
Schema validation for gh-project-pilot.

Enforces JSON Schema validation at every data boundary: the backlog
document, the config file and the publish ledgers.
"""

import json
from pathlib import Path

import jsonschema

from ghpilot.lib.errors import EXIT_INPUT_ERROR, PilotError


class ValidationError(PilotError):
    """Schema validation failed."""
    exit_code = EXIT_INPUT_ERROR

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text(encoding="utf-8"))
    return _schema_cache[schema_name]


def _format_path(error: jsonschema.ValidationError) -> str:
    if not error.absolute_path:
        return "(root)"
    return ".".join(str(p) for p in error.absolute_path)


def validate(data: dict, schema_name: str) -> None:
    """
    Validate data against named schema.

    Args:
        data: Dictionary to validate
        schema_name: Schema name (e.g., "backlog", "publish_state")

    Raises:
        ValidationError: If validation fails (first violation only)
    """
    schema = _load_schema(schema_name)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise ValidationError(schema_name, e.message, _format_path(e)) from None


def collect_errors(data, schema_name: str) -> list[str]:
    """
    Validate data and return every violation as "path: message".

    Unlike validate(), this does not stop at the first problem. Results are
    ordered by location so the report is stable between runs.
    """
    schema = _load_schema(schema_name)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)

    errors = sorted(
        validator.iter_errors(data),
        key=lambda e: ([str(p) for p in e.absolute_path], e.message),
    )
    return [f"{_format_path(e)}: {e.message}" for e in errors]


def validate_file(filepath: Path, schema_name: str) -> dict:
    """
    Load JSON file and validate against schema.

    Args:
        filepath: Path to JSON file
        schema_name: Schema name to validate against

    Returns:
        Parsed and validated data

    Raises:
        ValidationError: If file invalid or doesn't match schema
    """
    if not filepath.exists():
        raise ValidationError(schema_name, f"File not found: {filepath}")

    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(schema_name, f"Invalid JSON in {filepath}: {e}") from None

    validate(data, schema_name)
    return data


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """
    Validate data before writing to file. Ensures we never write invalid data.

    Raises:
        ValidationError: If data doesn't match schema
    """
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}"
        ) from None
