"""Error taxonomy and the explicit result type used at non-fatal call sites."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class RestaurantReviewsError(RuntimeError):
    pass


class NetworkError(RestaurantReviewsError):
    """Fetch failed: connection error, non-2xx status or malformed payload."""


class NotFoundError(RestaurantReviewsError):
    """A single-record lookup missed, remotely or in the store."""


class StoreInitError(RestaurantReviewsError):
    """The persisted store has a version or schema the caller cannot open."""


class StoreWriteError(RestaurantReviewsError):
    """An upsert failed. Never fatal to the record pipeline."""


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        if self.error is not None:
            raise self.error
        return self.value
