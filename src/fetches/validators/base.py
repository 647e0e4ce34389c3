"""Abstract base class for validator adapters.

Every adapter subclasses :class:`ValidatorAdapter` and implements
:meth:`~ValidatorAdapter.validate`. Adapters are stateless: one instance can
validate any number of payloads against any number of schemas of its kind.

The single rule every adapter follows: whatever goes wrong inside the
underlying mechanism (a mismatch, a malformed schema, an exception raised by
user code), the caller only ever sees
:class:`~fetches.exceptions.FetchesValidationError`.

Example:
    Minimal adapter implementation::

        class UppercaseAdapter(ValidatorAdapter):
            kind = "uppercase"

            def validate(self, data, schema):
                if not isinstance(data, str) or not data.isupper():
                    raise self.fail("expected an upper-case string")
                return data
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from fetches.exceptions import FetchesValidationError


class ValidatorAdapter(ABC):
    """Base class for all validator adapters.

    Subclasses set :attr:`kind` to the
    :class:`~fetches.models.ValidatorType` value they serve and implement
    :meth:`validate`.
    """

    kind: str = ""

    @abstractmethod
    def validate(self, data: Any, schema: Any) -> Any:
        """Validate *data* against *schema* and return the validated value.

        The returned value replaces the response payload, so adapters that
        coerce or construct objects (pydantic models, dataclasses) return
        the constructed object rather than the raw input.

        Args:
            data: The decoded response body.
            schema: A schema object understood by this adapter.

        Returns:
            The validated (possibly coerced) value.

        Raises:
            FetchesValidationError: On any validation failure.
        """
        ...

    def fail(self, detail: str) -> FetchesValidationError:
        """Build the error raised for a failed validation."""
        return FetchesValidationError(f"{self.kind} validation failed: {detail}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
