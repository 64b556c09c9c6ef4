"""Check representation: raw check model, validation and serialization."""

from .model import (
    METADATA_KEYS,
    CheckKind,
    ExampleStatus,
    RawCheck,
    SourceLocation,
)
from .validation import (
    CheckValidationError,
    CompilationError,
    validate_alternatives,
    validate_body,
    validate_check,
)
from .serialize import (
    ControlRunEncoder,
    group_to_dict,
    groups_to_dict,
    to_dict,
    to_json,
)

__all__ = [
    "METADATA_KEYS",
    "CheckKind",
    "ExampleStatus",
    "RawCheck",
    "SourceLocation",
    # Validation
    "CheckValidationError",
    "CompilationError",
    "validate_alternatives",
    "validate_body",
    "validate_check",
    # Serialization
    "ControlRunEncoder",
    "group_to_dict",
    "groups_to_dict",
    "to_dict",
    "to_json",
]
