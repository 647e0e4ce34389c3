"""Validator adapter for pydantic models (the default kind)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from fetches.validators.base import ValidatorAdapter


class PydanticModelAdapter(ValidatorAdapter):
    """Validates payloads with :meth:`pydantic.BaseModel.model_validate`.

    The schema must be a :class:`~pydantic.BaseModel` subclass; the
    validated model instance replaces the payload.
    """

    kind = "pydantic"

    def validate(self, data: Any, schema: Any) -> Any:
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise self.fail(f"schema must be a pydantic model class, got {schema!r}")
        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            raise self.fail(_summarize(exc)) from exc
        except Exception as exc:
            raise self.fail(str(exc)) from exc


def _summarize(exc: ValidationError) -> str:
    """Render pydantic errors as ``loc: msg`` pairs."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', '')}")
    return "; ".join(parts) or str(exc)
