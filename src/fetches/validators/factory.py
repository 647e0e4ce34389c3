"""Kind-keyed factory for validator adapters."""

from __future__ import annotations

from typing import Union

from fetches.exceptions import FetchesConfigurationError
from fetches.models import ValidatorType
from fetches.validators.base import ValidatorAdapter
from fetches.validators.dataclass_model import DataclassAdapter
from fetches.validators.json_schema import JsonSchemaAdapter
from fetches.validators.predicate import CallableAdapter
from fetches.validators.pydantic_model import PydanticModelAdapter
from fetches.validators.type_adapter import TypeAdapterAdapter

_ADAPTERS: dict[ValidatorType, type[ValidatorAdapter]] = {
    ValidatorType.PYDANTIC: PydanticModelAdapter,
    ValidatorType.TYPE_ADAPTER: TypeAdapterAdapter,
    ValidatorType.JSONSCHEMA: JsonSchemaAdapter,
    ValidatorType.DATACLASS: DataclassAdapter,
    ValidatorType.CALLABLE: CallableAdapter,
}


def create_validator(kind: Union[ValidatorType, str]) -> ValidatorAdapter:
    """Return the adapter for *kind*.

    Args:
        kind: A :class:`~fetches.models.ValidatorType` member or its value.

    Raises:
        FetchesConfigurationError: If *kind* is not a supported validator.
    """
    try:
        validator_type = ValidatorType(kind)
    except ValueError:
        supported = ", ".join(t.value for t in ValidatorType)
        raise FetchesConfigurationError(
            f"Unsupported validator type: {kind!r} (expected one of: {supported})"
        ) from None
    return _ADAPTERS[validator_type]()
