"""gridspine core -- domain-agnostic primitives the table engine builds on.

Architecture::

    errors.py      Structured error hierarchy (GridError, CoercionError, ...)
    result.py      Result[T] envelope (Ok / Err / try_result)
    logging.py     structlog configuration + get_logger
    settings.py    GridSettings (pydantic-settings) + cached get_settings
    timestamps.py  ULID generation, UTC helpers, calendar-date parsing
"""

from gridspine.core.errors import (
    CoercionError,
    ConfigError,
    DuplicateRowKeyError,
    ErrorCategory,
    ErrorContext,
    GridError,
    GroupKeyError,
    InvalidTransitionError,
    MissingRowKeyError,
    RowKeyError,
    RowNotFoundError,
    UnknownFieldError,
)
from gridspine.core.result import Err, Ok, Result, from_optional, try_result

__all__ = [
    "CoercionError",
    "ConfigError",
    "DuplicateRowKeyError",
    "ErrorCategory",
    "ErrorContext",
    "GridError",
    "GroupKeyError",
    "InvalidTransitionError",
    "MissingRowKeyError",
    "RowKeyError",
    "RowNotFoundError",
    "UnknownFieldError",
    "Err",
    "Ok",
    "Result",
    "from_optional",
    "try_result",
]
