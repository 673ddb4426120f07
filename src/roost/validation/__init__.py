"""Request validation: composable rules, clean results.

Usage::

    from roost.validation import Fields, required, integer, max_length

    class UsersSchema(Schema):
        POST = {
            "body": Fields({"name": [required, max_length(80)]}),
            "query": {"page": [integer]},
        }

A failing request is answered with 400 and every field error.
"""

from roost.validation.fields import Fields, validate
from roost.validation.request import LOCATIONS, RequestSchema, SubSchema, build_request_schema
from roost.validation.result import ValidationResult
from roost.validation.rules import (
    Validator,
    boolean,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    required,
    string,
)

__all__ = [
    "LOCATIONS",
    "Fields",
    "RequestSchema",
    "SubSchema",
    "ValidationResult",
    "Validator",
    "boolean",
    "build_request_schema",
    "email",
    "integer",
    "matches",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "required",
    "string",
    "validate",
]
