from __future__ import annotations

"""Schema validation helpers shared by tools, agents and the service boundary.

A *schema* is either a pydantic ``BaseModel`` subclass or any type accepted by
``pydantic.TypeAdapter``. Validation never raises for a bad payload; it
returns a ``ValidationResult`` that is either ``ok`` with the parsed value or
carries the list of ``ValidationIssue`` describing what failed. Callers that
prefer exceptions use ``parse_or_raise``.

Instances of a model are re-validated from their dumped form, so a value that
was constructed without validation (``model_construct``) or produced by an
external extraction step is checked again against every field constraint.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import SchemaValidationError
from .schemas.base import BaseSchema

T = TypeVar("T")


class ValidationIssue(BaseSchema):
    loc: Tuple[Union[str, int], ...] = ()
    msg: str
    type: str


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Tagged validation outcome: ``ok`` with ``value`` or not ok with ``issues``."""

    ok: bool
    value: Optional[T] = None
    issues: Tuple[ValidationIssue, ...] = ()


@lru_cache(maxsize=256)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _is_model(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def _issues_from(exc: ValidationError) -> Tuple[ValidationIssue, ...]:
    return tuple(
        ValidationIssue(loc=tuple(err.get("loc", ())), msg=err.get("msg", ""), type=err.get("type", "value_error"))
        for err in exc.errors()
    )


def validate(schema: Any, payload: Any) -> ValidationResult[Any]:
    """Validate ``payload`` against ``schema``.

    Args:
        schema: A ``BaseModel`` subclass or a type understood by ``TypeAdapter``.
        payload: Raw data (mapping, scalar) or a model instance to re-check.

    Returns:
        ValidationResult with the parsed value or the validation issues.
    """
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    try:
        if _is_model(schema):
            value = schema.model_validate(payload)
        else:
            value = _adapter(schema).validate_python(payload)
    except ValidationError as exc:
        return ValidationResult(ok=False, issues=_issues_from(exc))
    return ValidationResult(ok=True, value=value)


def parse_or_raise(schema: Any, payload: Any, *, message: str = "Validation failed") -> Any:
    """Validate and return the parsed value, raising ``SchemaValidationError`` on failure."""
    result = validate(schema, payload)
    if not result.ok:
        raise SchemaValidationError(result.issues, message=message)
    return result.value


def json_schema(schema: Any) -> Dict[str, Any]:
    """Return the JSON schema used when binding ``schema`` to a model as tool parameters."""
    if _is_model(schema):
        return schema.model_json_schema()
    return _adapter(schema).json_schema()
