"""Validator adapter for plain check/coerce functions."""

from __future__ import annotations

from typing import Annotated, Any, Callable

from pydantic import AfterValidator, TypeAdapter, ValidationError

from fetches.validators.base import ValidatorAdapter
from fetches.validators.pydantic_model import _summarize


def _as_after_validator(check: Callable[[Any], Any]) -> Callable[[Any], Any]:
    name = getattr(check, "__name__", "check")

    def run(value: Any) -> Any:
        result = check(value)
        if result is True:
            return value
        if result is False:
            raise ValueError(f"{name} rejected the payload")
        return result

    return run


class CallableAdapter(ValidatorAdapter):
    """Runs ``schema(data)`` as a pydantic after-validator.

    A ``True`` result keeps the payload, ``False`` rejects it, and any other
    return value replaces the payload. ``ValueError`` and ``AssertionError``
    raised by the function surface as pydantic errors; any other exception
    is reported as a validation failure too.
    """

    kind = "callable"

    def validate(self, data: Any, schema: Any) -> Any:
        if not callable(schema):
            raise self.fail(f"schema must be callable, got {type(schema).__name__}")
        adapter = TypeAdapter(Annotated[Any, AfterValidator(_as_after_validator(schema))])
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise self.fail(_summarize(exc)) from exc
        except Exception as exc:
            raise self.fail(str(exc) or type(exc).__name__) from exc
