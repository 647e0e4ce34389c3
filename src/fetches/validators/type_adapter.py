"""Validator adapter for arbitrary type annotations via :class:`pydantic.TypeAdapter`."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from fetches.validators.base import ValidatorAdapter
from fetches.validators.pydantic_model import _summarize


class TypeAdapterAdapter(ValidatorAdapter):
    """Validates payloads against any type annotation.

    Accepts anything :class:`pydantic.TypeAdapter` understands:
    ``list[int]``, ``dict[str, float]``, ``TypedDict`` classes,
    ``Annotated`` constraints, unions, and so on.
    """

    kind = "type-adapter"

    def validate(self, data: Any, schema: Any) -> Any:
        try:
            adapter = TypeAdapter(schema)
        except Exception as exc:
            raise self.fail(f"unsupported type {schema!r}: {exc}") from exc
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise self.fail(_summarize(exc)) from exc
        except Exception as exc:
            raise self.fail(str(exc)) from exc
