"""
SchemaValidator - parse and normalize batch_jobs declaration documents.

The schema is described declaratively by three field tables (root, job, step).
A single routine checks a raw mapping against a table: required fields must be
present, present fields must have the declared kind, absent optional fields
take their default, and keys not in the table are rejected.

validate() is pure: it performs no I/O and identical input always yields an
equal ConnectorDeclaration. parse_document() is the only YAML-facing part.
"""

from collections.abc import Hashable
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from batchjobs.discovery import JobDefinitionSource
from batchjobs.errors import ParseError, SchemaError
from batchjobs.schemas import (
    DEFAULT_STEP_CLASS,
    ConnectorDeclaration,
    JobSpec,
    StepSpec,
)

STRING = "string"
MAPPING = "mapping"

_KINDS: dict[str, tuple[Callable[[Any], bool], str]] = {
    STRING: (lambda value: isinstance(value, str), "a string"),
    MAPPING: (lambda value: isinstance(value, dict), "a mapping"),
}

# YAML timestamps load as date or datetime
_SCALAR_TYPES = (str, int, float, bool, date, type(None))


@dataclass(frozen=True)
class Field:
    """
    One entry of a schema table.

    Attributes:
        key: Key in the document
        kind: STRING or MAPPING
        required: Whether the key must be present
        default: Value used when an optional key is absent
    """
    key: str
    kind: str
    required: bool = True
    default: Any = None


ROOT_FIELDS = (
    Field("name", STRING),
    Field("jobs", MAPPING),
)

JOB_FIELDS = (
    Field("type", STRING),
    Field("steps", MAPPING),
)

STEP_FIELDS = (
    Field("class", STRING, required=False, default=DEFAULT_STEP_CLASS),
    Field("services", MAPPING, required=False, default={}),
    Field("parameters", MAPPING, required=False, default={}),
)


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_document(source: JobDefinitionSource) -> Any:
    """
    Parse the YAML text of a declaration file.

    Raises:
        ParseError: If the text is not a single well-formed YAML document
                    or repeats a key within a mapping
    """
    try:
        return yaml.load(source.contents, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML: {e}", source.path) from e


def _join(field_path: str, key: str) -> str:
    return f"{field_path}.{key}" if field_path else key


def _check_fields(
    data: Any,
    fields: tuple[Field, ...],
    field_path: str,
    source_path: Optional[Path],
) -> dict[str, Any]:
    """Check one mapping against a field table and return the defaulted values."""
    if not isinstance(data, dict):
        raise SchemaError(
            f"expected a mapping, got {type(data).__name__}", source_path, field_path
        )

    known = {f.key for f in fields}
    unknown = [key for key in data if key not in known]
    if unknown:
        raise SchemaError(
            f"unrecognized key(s): {', '.join(str(k) for k in unknown)}; "
            f"expected one of: {', '.join(f.key for f in fields)}",
            source_path,
            field_path,
        )

    values: dict[str, Any] = {}
    for f in fields:
        path = _join(field_path, f.key)
        if f.key not in data:
            if f.required:
                raise SchemaError("required key is missing", source_path, path)
            values[f.key] = dict(f.default) if isinstance(f.default, dict) else f.default
            continue

        value = data[f.key]
        # "services: ~" and a bare "steps:" mean an empty mapping
        if value is None and f.kind == MAPPING:
            value = {}
        check, description = _KINDS[f.kind]
        if not check(value):
            raise SchemaError(
                f"expected {description}, got {type(value).__name__}", source_path, path
            )
        values[f.key] = value
    return values


def _check_names(mapping: dict, what: str, field_path: str, source_path: Optional[Path]) -> None:
    for key in mapping:
        if not isinstance(key, str) or not key:
            raise SchemaError(
                f"{what} must be a non-empty string, got {key!r}", source_path, field_path
            )


def _validate_step(
    data: Any,
    field_path: str,
    source_path: Optional[Path],
    default_step_class: str,
) -> StepSpec:
    # "write: ~" declares a step with no overrides
    if data is None:
        data = {}
    fields = tuple(
        replace(f, default=default_step_class) if f.key == "class" else f
        for f in STEP_FIELDS
    )
    values = _check_fields(data, fields, field_path, source_path)

    step_class = values["class"]
    if not step_class:
        raise SchemaError("class must not be empty", source_path, _join(field_path, "class"))

    services_path = _join(field_path, "services")
    services = values["services"]
    _check_names(services, "setter name", services_path, source_path)
    for setter, service_id in services.items():
        if not isinstance(service_id, str) or not service_id:
            raise SchemaError(
                f"service id must be a non-empty string, got {service_id!r}",
                source_path,
                _join(services_path, setter),
            )

    parameters_path = _join(field_path, "parameters")
    parameters = values["parameters"]
    _check_names(parameters, "setter name", parameters_path, source_path)
    for setter, value in parameters.items():
        if not isinstance(value, _SCALAR_TYPES):
            raise SchemaError(
                f"parameter must be a scalar, got {type(value).__name__}",
                source_path,
                _join(parameters_path, setter),
            )

    return StepSpec(step_class=step_class, services=services, parameters=parameters)


def _validate_job(
    data: Any,
    field_path: str,
    source_path: Optional[Path],
    default_step_class: str,
) -> JobSpec:
    values = _check_fields(data, JOB_FIELDS, field_path, source_path)

    steps_path = _join(field_path, "steps")
    _check_names(values["steps"], "step name", steps_path, source_path)
    steps = {
        step_name: _validate_step(
            step_data, _join(steps_path, step_name), source_path, default_step_class
        )
        for step_name, step_data in values["steps"].items()
    }
    return JobSpec(type=values["type"], steps=steps)


def validate(
    raw: Any,
    source_path: Optional[Path | str] = None,
    default_step_class: str = DEFAULT_STEP_CLASS,
) -> ConnectorDeclaration:
    """
    Validate and normalize a parsed declaration document.

    Args:
        raw: Parsed document (normally the result of parse_document)
        source_path: File the document came from, used in error messages
        default_step_class: Processor class for steps without a "class" key

    Returns:
        The normalized ConnectorDeclaration

    Raises:
        SchemaError: If the document does not match the schema
    """
    source_path = Path(source_path) if source_path is not None else None
    if raw is None:
        raise SchemaError("document is empty", source_path)

    values = _check_fields(raw, ROOT_FIELDS, "", source_path)
    if not values["name"].strip():
        raise SchemaError("connector name must not be empty", source_path, "name")

    _check_names(values["jobs"], "job name", "jobs", source_path)
    jobs = {
        job_name: _validate_job(
            job_data, _join("jobs", job_name), source_path, default_step_class
        )
        for job_name, job_data in values["jobs"].items()
    }
    return ConnectorDeclaration(name=values["name"], jobs=jobs)


def validate_source(
    source: JobDefinitionSource,
    default_step_class: str = DEFAULT_STEP_CLASS,
) -> ConnectorDeclaration:
    """Parse and validate one discovered source."""
    return validate(parse_document(source), source.path, default_step_class)
