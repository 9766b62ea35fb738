"""
Structured error types for the gridspine table engine.

Provides a small hierarchy of typed errors that carry a category, structured
context and an optional chained cause. Errors on the edit path are not raised
into the render layer: they are wrapped in ``Err`` (see
:mod:`gridspine.core.result`) or folded into a ``CommitResult``, so callers
inspect them as values. Only load-time validation and presentation-layer
programming errors (illegal editor transitions, a raising key function) are
raised.

Manifesto:
    - **Errors as values on the edit path:** Coercion and identity failures
      are expected outcomes of user input, not crashes
    - **Typed hierarchy:** One subclass per failure the engine can report
    - **Rich context:** row id, field and raw input travel with the error
    - **Serialization-ready:** ``to_dict()`` feeds structured logging

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                        GridError                           │
        │            (category, context, cause, to_dict)             │
        ├───────────────────────────────────────────────────────────┤
        │  CoercionError        RowNotFoundError    GroupKeyError   │
        │  (COERCION)           (IDENTITY)          (GROUPING)      │
        │                       UnknownFieldError                    │
        │                                                            │
        │  RowKeyError          InvalidTransitionError  ConfigError │
        │  (LOAD)               (EDITOR)                (CONFIG)    │
        │    │                                                       │
        │  DuplicateRowKeyError                                      │
        │  MissingRowKeyError                                        │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = CoercionError("not a number", field="age", value="abc")
    >>> error.category
    <ErrorCategory.COERCION: 'COERCION'>
    >>> error.to_dict()["field"]
    'age'

    >>> error = RowNotFoundError(42).with_context(dataset="users")
    >>> error.context.dataset
    'users'

Tags:
    errors, error-hierarchy, error-context, gridspine, result-pattern

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for logging and routing.

    Attributes:
        COERCION: Raw editor input cannot become the column's type
        IDENTITY: A row identity is absent from the current snapshot
        LOAD: A collection handed to the engine is malformed
        GROUPING: A group key function misbehaved
        EDITOR: Illegal cell-editor state transition
        CONFIG: Invalid settings
        INTERNAL: Anything else (a bug)
    """

    COERCION = "COERCION"
    IDENTITY = "IDENTITY"
    LOAD = "LOAD"
    GROUPING = "GROUPING"
    EDITOR = "EDITOR"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a :class:`GridError`.

    Attributes:
        dataset: Name of the dataset the engine was loaded with
        row_id: Identity of the row involved
        field: Field (column) name involved
        metadata: Additional key-value pairs
    """

    dataset: str | None = None
    row_id: Any = None
    field: str | None = None
    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping of the fields that are set."""
        result: dict[str, Any] = {}
        for key in ("dataset", "row_id", "field"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class GridError(Exception):
    """
    Base exception for all gridspine errors.

    Subclasses set ``default_category``; every instance carries a message,
    a category, an :class:`ErrorContext` and an optional chained cause.

    Examples:
        >>> error = GridError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> try:
        ...     int("x")
        ... except ValueError as e:
        ...     error = GridError("Bad input", cause=e)
        >>> error.cause
        ValueError("invalid literal for int() with base 10: 'x'")
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GridError:
        """
        Fill in context fields and return self; unknown keys go to metadata.

        Usage:
            return Err(RowNotFoundError(row_id).with_context(dataset="users"))
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Structured form used in log records and CLI JSON output."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# EDIT PATH ERRORS (returned as values)
# =============================================================================


class CoercionError(GridError):
    """
    Raw editor input could not be converted to the column's semantic type.

    Recovered locally: the edit is rejected and the previous value kept.
    """

    default_category = ErrorCategory.COERCION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        target_type: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.target_type = target_type

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.target_type:
            result["target_type"] = self.target_type
        return result


class RowNotFoundError(GridError):
    """A commit targeted a row identity that is not in the current snapshot."""

    default_category = ErrorCategory.IDENTITY

    def __init__(self, row_id: Any, message: str | None = None):
        self.row_id = row_id
        super().__init__(
            message or f"Row not found: {row_id!r}",
            context=ErrorContext(row_id=row_id),
        )


class UnknownFieldError(GridError):
    """A commit targeted a field the row does not carry."""

    default_category = ErrorCategory.IDENTITY

    def __init__(self, row_id: Any, field: str):
        self.row_id = row_id
        self.field = field
        super().__init__(
            f"Row {row_id!r} has no field {field!r}",
            context=ErrorContext(row_id=row_id, field=field),
        )


# =============================================================================
# LOAD / PROGRAMMING ERRORS (raised)
# =============================================================================


class RowKeyError(GridError):
    """A loaded collection violates the row identity rules."""

    default_category = ErrorCategory.LOAD


class DuplicateRowKeyError(RowKeyError):
    """Two records share the same identity."""

    def __init__(self, key_field: str, row_id: Any):
        self.key_field = key_field
        self.row_id = row_id
        super().__init__(
            f"Duplicate row identity {row_id!r} in field {key_field!r}",
            context=ErrorContext(row_id=row_id, field=key_field),
        )


class MissingRowKeyError(RowKeyError):
    """A record lacks the row-key field."""

    def __init__(self, key_field: str, position: int):
        self.key_field = key_field
        self.position = position
        super().__init__(
            f"Record at position {position} has no key field {key_field!r}",
            context=ErrorContext(field=key_field, metadata={"position": position}),
        )


class GroupKeyError(GridError):
    """A group key function raised or returned a non-string key."""

    default_category = ErrorCategory.GROUPING


class InvalidTransitionError(GridError):
    """A cell editor was driven through an illegal state transition."""

    default_category = ErrorCategory.EDITOR


class ConfigError(GridError):
    """GRIDSPINE_* settings failed validation."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "GridError",
    "CoercionError",
    "RowNotFoundError",
    "UnknownFieldError",
    "RowKeyError",
    "DuplicateRowKeyError",
    "MissingRowKeyError",
    "GroupKeyError",
    "InvalidTransitionError",
    "ConfigError",
]
