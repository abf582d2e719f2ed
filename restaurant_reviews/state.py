"""Application state aggregate and its single writer.

Every update is a shallow patch: fields not named in the patch are carried over
by reference. The marker list and the thumbnail queue are owned containers that
are only ever mutated in place through their accessors, never swapped out.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterator, List, Optional, Tuple

from . import config
from .markers import Marker
from .models import Restaurant
from .render import Thumbnail

logger = logging.getLogger(__name__)

_OWNED_FIELDS = ("markers", "thumbnails")


class MarkerList:
    def __init__(self) -> None:
        self._markers: List[Marker] = []

    def add(self, marker: Marker) -> None:
        self._markers.append(marker)

    def clear(self) -> int:
        """Detach every tracked marker from the map and forget it."""
        removed = 0
        while self._markers:
            self._markers.pop(0).remove_from_map()
            removed += 1
        return removed

    def is_empty(self) -> bool:
        return not self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(list(self._markers))


class ThumbnailQueue:
    def __init__(self) -> None:
        self._items: List[Thumbnail] = []

    def push(self, thumbnail: Thumbnail) -> None:
        self._items.append(thumbnail)

    def pending(self) -> List[Thumbnail]:
        return [t for t in self._items if not t.revealed]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Thumbnail]:
        return iter(list(self._items))


@dataclass(frozen=True)
class AppState:
    restaurants: Tuple[Restaurant, ...] = ()
    neighborhoods: Tuple[str, ...] = ()
    cuisines: Tuple[str, ...] = ()
    selected_cuisine: str = config.WILDCARD
    selected_neighborhood: str = config.WILDCARD
    offline: bool = False
    map: Optional[Any] = None
    store: Optional[Any] = None
    markers: MarkerList = field(default_factory=MarkerList)
    thumbnails: ThumbnailQueue = field(default_factory=ThumbnailQueue)


def patch(current: AppState, **partial: Any) -> AppState:
    owned = [name for name in _OWNED_FIELDS if name in partial]
    if owned:
        raise ValueError(f"{', '.join(owned)} cannot be patched; use the container accessors")
    known = {f.name for f in fields(AppState)}
    unknown = sorted(set(partial) - known)
    if unknown:
        raise TypeError(f"Unknown state fields: {', '.join(unknown)}")
    return replace(current, **partial)


class StateContainer:
    def __init__(self, initial: Optional[AppState] = None) -> None:
        self._state = initial or AppState()
        self._updating = False

    @property
    def state(self) -> AppState:
        return self._state

    @contextmanager
    def _update(self) -> Iterator[None]:
        if self._updating:
            raise RuntimeError("state update already in progress")
        self._updating = True
        try:
            yield
        finally:
            self._updating = False

    def set_state(self, **partial: Any) -> AppState:
        with self._update():
            self._state = patch(self._state, **partial)
        return self._state

    def append_restaurant(self, restaurant: Restaurant) -> AppState:
        return self.set_state(restaurants=self._state.restaurants + (restaurant,))

    def add_marker(self, marker: Marker) -> None:
        with self._update():
            self._state.markers.add(marker)

    def clear_markers(self) -> int:
        with self._update():
            return self._state.markers.clear()

    def push_thumbnail(self, thumbnail: Thumbnail) -> None:
        with self._update():
            self._state.thumbnails.push(thumbnail)

    def reset(self) -> None:
        """Drop the current result set, its thumbnails and its map markers."""
        with self._update():
            removed = self._state.markers.clear()
            self._state.thumbnails.clear()
            self._state = patch(self._state, restaurants=())
        logger.debug("State reset, %s markers removed", removed)
