"""Validator adapter for standard-library dataclasses."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from fetches.validators.base import ValidatorAdapter
from fetches.validators.pydantic_model import _summarize


class DataclassAdapter(ValidatorAdapter):
    """Validates a mapping payload into a dataclass instance.

    Field values are checked and coerced against the dataclass annotations
    by :class:`pydantic.TypeAdapter`. Keys that name no field are rejected.
    Exceptions raised by ``__post_init__`` also count as validation
    failures.
    """

    kind = "dataclass"

    def validate(self, data: Any, schema: Any) -> Any:
        if not (isinstance(schema, type) and dataclasses.is_dataclass(schema)):
            raise self.fail(f"schema must be a dataclass type, got {schema!r}")
        if not isinstance(data, Mapping):
            raise self.fail(f"expected an object, got {type(data).__name__}")

        known = {f.name for f in dataclasses.fields(schema)}
        unexpected = sorted(str(key) for key in data if key not in known)
        if unexpected:
            raise self.fail(f"unexpected field(s): {', '.join(unexpected)}")

        try:
            return TypeAdapter(schema).validate_python(dict(data))
        except ValidationError as exc:
            raise self.fail(_summarize(exc)) from exc
        except Exception as exc:
            raise self.fail(str(exc) or type(exc).__name__) from exc
