"""Validator adapter for JSON Schema documents."""

from __future__ import annotations

from typing import Any

import jsonschema

from fetches.validators.base import ValidatorAdapter


class JsonSchemaAdapter(ValidatorAdapter):
    """Validates payloads with :func:`jsonschema.validate`.

    The schema is a JSON Schema document (a ``dict``); the draft is picked
    from its ``$schema`` keyword. The payload is returned unchanged.
    """

    kind = "jsonschema"

    def validate(self, data: Any, schema: Any) -> Any:
        if not isinstance(schema, (dict, bool)):
            raise self.fail(f"schema must be a JSON Schema document, got {type(schema).__name__}")
        try:
            jsonschema.validate(instance=data, schema=schema)
        except jsonschema.ValidationError as exc:
            path = "/".join(str(p) for p in exc.absolute_path) or "<root>"
            raise self.fail(f"{path}: {exc.message}") from exc
        except jsonschema.SchemaError as exc:
            raise self.fail(f"invalid schema: {exc.message}") from exc
        except Exception as exc:
            raise self.fail(str(exc)) from exc
        return data
