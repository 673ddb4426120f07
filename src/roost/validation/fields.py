"""Field-rule sub-schemas.

A :class:`Fields` object is the concrete sub-schema used for each of a
request schema's ``params``, ``body``, ``headers``, and ``query``::

    from roost.validation import Fields, required, integer

    class UserSchema(Schema):
        GET = {"params": Fields({"id": [required, integer]})}
"""

from collections.abc import Mapping
from typing import Any

from roost.validation.result import ValidationResult
from roost.validation.rules import Validator, required


class Fields:
    """Validate a mapping against per-field rules.

    Fields without ``required`` in their rule list are optional: a
    missing value skips the remaining rules for that field. All rules
    run for present fields, so every failure is collected.
    """

    __slots__ = ("_rules", "allow_unknown")

    def __init__(self, rules: dict[str, list[Validator]], *, allow_unknown: bool = True) -> None:
        self._rules = rules
        self.allow_unknown = allow_unknown

    @property
    def rules(self) -> dict[str, list[Validator]]:
        return dict(self._rules)

    def validate(self, value: Any) -> ValidationResult:
        """Validate ``value``, which must be a mapping."""
        if not isinstance(value, Mapping):
            return ValidationResult(data={}, errors={"": ["Must be an object"]})
        return validate(value, self._rules, allow_unknown=self.allow_unknown)

    def __repr__(self) -> str:
        return f"Fields({sorted(self._rules)!r})"


def validate(
    data: Mapping[str, Any],
    rules: dict[str, list[Validator]],
    *,
    allow_unknown: bool = True,
) -> ValidationResult:
    """Validate data against a set of rules.

    Args:
        data: Any mapping of field names to values: ``QueryParams``,
            path params, headers, or a decoded JSON object.
        rules: A dict mapping field names to lists of validator
            functions. Each validator returns an error message string
            on failure, or ``None`` on success.
        allow_unknown: When False, fields without rules are errors.

    Returns:
        A ``ValidationResult`` with ``.data`` (validated values) and
        ``.errors`` (field -> list of error messages).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, Any] = {}

    for field_name, validators in rules.items():
        value = data.get(field_name)
        if value is None and required not in validators:
            continue

        field_errors: list[str] = []
        for validator in validators:
            error = validator(value)
            if error is not None:
                field_errors.append(error)
                # Nothing else is meaningful on an absent value
                if validator is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    if not allow_unknown:
        for field_name in data:
            if field_name not in rules:
                errors[field_name] = ["Unknown field"]

    return ValidationResult(data=cleaned, errors=errors)
