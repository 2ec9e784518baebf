"""
api/validation.py -- Validate untrusted payloads against declared request shapes.

Shapes are the pydantic models in api/models.py. validate() is used where the
payload is a free-form dict (the RPC endpoint's "param"); REST routes declare
the same models as body parameters and FastAPI runs the identical checks,
converting its RequestValidationError through failure_from_errors().

Collect-all: pydantic reports every failing field in one pass, and so does
ValidationFailure. Nothing here raises for bad input -- the result is either
the validated model or a ValidationFailure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, TypeVar, Union

from pydantic import BaseModel, ValidationError

ShapeT = TypeVar("ShapeT", bound=BaseModel)


@dataclass(frozen=True)
class FieldError:
    field: str  # dotted path, "payload" for whole-payload errors
    message: str


@dataclass(frozen=True)
class ValidationFailure:
    """Every field-level problem found in one payload."""

    errors: tuple[FieldError, ...]

    def describe(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)


def failure_from_errors(errors: Iterable[dict[str, Any]]) -> ValidationFailure:
    """Build a ValidationFailure from pydantic's errors() list.

    FastAPI prefixes body locations with "body"; that prefix is dropped so REST
    and RPC report the same field names.
    """
    collected = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] == "body":
            loc = loc[1:]
        collected.append(FieldError(field=".".join(loc) or "payload", message=err.get("msg", "invalid value")))
    if not collected:
        collected.append(FieldError(field="payload", message="invalid payload"))
    return ValidationFailure(errors=tuple(collected))


def validate(raw: Any, shape: type[ShapeT]) -> Union[ShapeT, ValidationFailure]:
    """Check raw against shape; return the model instance or a ValidationFailure."""
    if not isinstance(raw, dict):
        return ValidationFailure(errors=(FieldError(field="payload", message="expected a JSON object"),))
    try:
        return shape.model_validate(raw)
    except ValidationError as exc:
        return failure_from_errors(exc.errors())


def validate_entity(raw: Any, key: str, shape: type[ShapeT]) -> Union[ShapeT, ValidationFailure]:
    """Check raw[key] against shape, for params shaped {"role": {...}} or {"user": {...}}.

    Field names in a failure carry the key as a prefix ("role.name"); a missing
    or non-object entity is reported against the key itself.
    """
    if not isinstance(raw, dict):
        return validate(raw, shape)
    result = validate(raw.get(key), shape)
    if isinstance(result, ValidationFailure):
        return ValidationFailure(
            errors=tuple(
                FieldError(field=key if e.field == "payload" else f"{key}.{e.field}", message=e.message)
                for e in result.errors
            )
        )
    return result
