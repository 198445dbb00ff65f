from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import DumpscopeError

T = TypeVar("T")


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """Outcome of a memory read: either a value or the error that prevented it.

    The primitive reads unwrap it and raise; the convenience reads collapse a
    failure into an empty value.
    """

    value: Optional[T] = None
    error: Optional[DumpscopeError] = None

    @classmethod
    def success(cls, value: T) -> "ReadResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DumpscopeError) -> "ReadResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: T) -> T:
        return default if self.error is not None else self.value
