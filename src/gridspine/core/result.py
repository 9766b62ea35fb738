"""
Ok / Err values for the edit path.

Coercers, ``RowStore.commit`` and the CLI reader return a ``Result`` instead
of raising, so a bad keystroke in a cell never unwinds through a render
callback. Callers branch with ``match``::

    match registry.for_column(column).coerce(raw, previous):
        case Ok(value):
            ...
        case Err(error):
            ...

Manifesto:
    - **Outcomes, not exceptions:** rejected input is a normal result
    - **Small surface:** map / flat_map to chain, unwrap_or to recover
    - **Immutable:** both arms are frozen, slotted dataclasses

Examples:
    >>> from gridspine.core.result import Ok, Err
    >>> Ok("31").map(int).unwrap()
    31
    >>> Err(ValueError("not a number")).map(int).unwrap_or(30)
    30

Tags:
    result-pattern, error-handling, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from gridspine.core.errors import GridError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """The operation produced ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Apply ``f`` to the carried value."""
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Continue with a step that may itself fail."""
        return f(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    The operation failed with ``error``.

    ``map`` and ``flat_map`` skip the step and keep the error; ``unwrap``
    re-raises it.
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, GridError):
            detail = self.error.to_dict()
        else:
            detail = {"error_type": type(self.error).__name__, "message": str(self.error)}
        return {"ok": False, "error": detail}


Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Run ``f`` and capture a raised exception as ``Err``.

    Used where a stdlib call signals failure by raising, e.g. ``json.loads``.

    Examples:
        >>> try_result(lambda: int("7")).unwrap()
        7
        >>> try_result(lambda: int("seven")).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


def from_optional(value: T | None, error: Exception) -> Result[T]:
    """``Ok(value)``, or ``Err(error)`` when ``value`` is None."""
    return Err(error) if value is None else Ok(value)


__all__ = ["Ok", "Err", "Result", "try_result", "from_optional"]
