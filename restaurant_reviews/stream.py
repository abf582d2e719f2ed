"""Lazy, single-pass record streams.

A ``Stream`` wraps an iterable and composes ``map``/``filter``/``distinct``/``tap``
operators without consuming anything until a terminal operation runs. Each
stream can be consumed once; operators preserve source order, and an exception
raised by the source surfaces unchanged to whoever consumes the stream.
"""
from __future__ import annotations

from typing import Any, Callable, Generic, Hashable, Iterable, Iterator, List, Optional, Set, TypeVar

from .errors import Result

T = TypeVar("T")
U = TypeVar("U")

_MISSING = object()


class StreamConsumedError(RuntimeError):
    pass


class Stream(Generic[T]):
    def __init__(self, source: Iterable[T]) -> None:
        self._source = source
        self._consumed = False

    @classmethod
    def from_iterable(cls, items: Iterable[T]) -> "Stream[T]":
        return cls(items)

    @classmethod
    def from_callable(cls, produce: Callable[[], Iterable[T]]) -> "Stream[T]":
        """Defer ``produce`` until the stream is consumed."""

        def generate() -> Iterator[T]:
            yield from produce()

        return cls(generate())

    def __iter__(self) -> Iterator[T]:
        if self._consumed:
            raise StreamConsumedError("stream was already consumed")
        self._consumed = True
        return iter(self._source)

    def map(self, fn: Callable[[T], U]) -> "Stream[U]":
        def generate() -> Iterator[U]:
            for item in self:
                yield fn(item)

        return Stream(generate())

    def filter(self, predicate: Callable[[T], bool]) -> "Stream[T]":
        def generate() -> Iterator[T]:
            for item in self:
                if predicate(item):
                    yield item

        return Stream(generate())

    def distinct(self, key: Optional[Callable[[T], Hashable]] = None) -> "Stream[T]":
        def generate() -> Iterator[T]:
            seen: Set[Hashable] = set()
            for item in self:
                marker = key(item) if key is not None else item
                if marker in seen:
                    continue
                seen.add(marker)
                yield item

        return Stream(generate())

    def tap(self, fn: Callable[[T], Any]) -> "Stream[T]":
        def generate() -> Iterator[T]:
            for item in self:
                fn(item)
                yield item

        return Stream(generate())

    def to_list(self) -> List[T]:
        return list(self)

    def first(self, default: Any = _MISSING) -> T:
        for item in self:
            return item
        if default is _MISSING:
            raise LookupError("stream is empty")
        return default

    def subscribe(
        self,
        on_next: Callable[[T], Any],
        on_error: Optional[Callable[[Exception], Any]] = None,
        on_complete: Optional[Callable[[], Any]] = None,
    ) -> Result[int]:
        """Drain the stream, routing an upstream failure to ``on_error``.

        Returns the number of delivered items, or the error that stopped delivery.
        """
        count = 0
        try:
            for item in self:
                on_next(item)
                count += 1
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
            return Result.failure(exc)
        if on_complete is not None:
            on_complete()
        return Result.success(count)
