# tasks/ai_engine/result.py
"""
Minimal Ok / Err result type for the external ranking step.

``unwrap_or_else`` is the one combinator the engine needs: an ``Ok`` yields
its value, an ``Err`` hands its failure to the fallback and returns that.
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class RankerFailure:
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap_or_else(self, fallback: Callable[[RankerFailure], T]) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: RankerFailure

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap_or_else(self, fallback: Callable[[RankerFailure], T]) -> T:
        return fallback(self.error)


Result = Union[Ok[T], Err]
