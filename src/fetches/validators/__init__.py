"""Response validation adapters.

Each :class:`~fetches.models.ValidatorType` is served by one stateless
adapter that wraps a single validation mechanism and reports every failure
as :class:`~fetches.exceptions.FetchesValidationError`:

* ``pydantic`` -- :class:`PydanticModelAdapter` (``BaseModel`` classes)
* ``type-adapter`` -- :class:`TypeAdapterAdapter` (any type annotation)
* ``jsonschema`` -- :class:`JsonSchemaAdapter` (JSON Schema documents)
* ``dataclass`` -- :class:`DataclassAdapter` (dataclasses, via ``pydantic.TypeAdapter``)
* ``callable`` -- :class:`CallableAdapter` (check/coerce functions as pydantic after-validators)

Use :func:`create_validator` to obtain one by kind.
"""

from fetches.validators.base import ValidatorAdapter
from fetches.validators.dataclass_model import DataclassAdapter
from fetches.validators.factory import create_validator
from fetches.validators.json_schema import JsonSchemaAdapter
from fetches.validators.predicate import CallableAdapter
from fetches.validators.pydantic_model import PydanticModelAdapter
from fetches.validators.type_adapter import TypeAdapterAdapter

__all__ = [
    "CallableAdapter",
    "DataclassAdapter",
    "JsonSchemaAdapter",
    "PydanticModelAdapter",
    "TypeAdapterAdapter",
    "ValidatorAdapter",
    "create_validator",
]
