"""Validation result: immutable container for validated data or errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating a value against a set of rules.

    The result is falsy when invalid, so you can write::

        result = fields.validate(request.query.to_dict())
        if not result:
            ...

    ``data`` contains the validated values (only populated for fields
    that passed). ``errors`` maps field names to lists of messages::

        {"name": ["This field is required"],
         "age": ["Must be a whole number"]}

    The empty field name ``""`` holds errors about the value as a whole.
    """

    data: dict[str, Any]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    @property
    def error(self) -> str | None:
        """Summary message, or ``None`` when valid.

        This is the attribute request-schema validators look at, so any
        object with a falsy ``error`` on success can stand in for a result.
        """
        if not self.errors:
            return None
        parts = [
            f"{name}: {'; '.join(messages)}" if name else "; ".join(messages)
            for name, messages in self.errors.items()
        ]
        return ", ".join(parts)

    def __bool__(self) -> bool:
        """Falsy when invalid, enabling the ``if not result:`` pattern."""
        return self.is_valid
