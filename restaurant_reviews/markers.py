"""Map marker lifecycle and the map collaborator contract."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from . import config
from .models import Restaurant
from .render import url_for_restaurant

logger = logging.getLogger(__name__)

ClickHandler = Callable[[], Any]


class Marker(Protocol):
    url: str

    def remove_from_map(self) -> None:
        ...

    def on_click(self, handler: ClickHandler) -> None:
        ...


class MapWidget(Protocol):
    def create_marker(self, position: Optional[Dict[str, float]], title: str, url: str) -> Marker:
        ...


def marker_descriptor(restaurant: Restaurant) -> Dict[str, Any]:
    return {
        "position": restaurant.latlng.as_dict() if restaurant.latlng else None,
        "title": restaurant.name,
        "url": url_for_restaurant(restaurant),
    }


def add_marker(restaurant: Restaurant, map_widget: MapWidget, navigate: Callable[[str], Any]) -> Marker:
    marker = map_widget.create_marker(**marker_descriptor(restaurant))
    marker.on_click(lambda: navigate(marker.url))
    return marker


class InMemoryMarker:
    def __init__(self, position: Optional[Dict[str, float]], title: str, url: str) -> None:
        self.position = position
        self.title = title
        self.url = url
        self.on_map = True
        self._handlers: List[ClickHandler] = []

    def remove_from_map(self) -> None:
        self.on_map = False

    def on_click(self, handler: ClickHandler) -> None:
        self._handlers.append(handler)

    def click(self) -> None:
        for handler in list(self._handlers):
            handler()

    def as_dict(self) -> Dict[str, Any]:
        return {"position": self.position, "title": self.title, "url": self.url}


class InMemoryMap:
    """Headless stand-in for the map widget; keeps every marker it was given."""

    def __init__(self, center: Optional[Dict[str, float]] = None, zoom: int = config.MAP_ZOOM) -> None:
        self.center = dict(center or config.MAP_CENTER)
        self.zoom = zoom
        self.markers: List[InMemoryMarker] = []

    def create_marker(self, position: Optional[Dict[str, float]], title: str, url: str) -> InMemoryMarker:
        marker = InMemoryMarker(position, title, url)
        self.markers.append(marker)
        logger.debug("Marker placed for %s", title)
        return marker

    def visible_markers(self) -> List[InMemoryMarker]:
        return [m for m in self.markers if m.on_map]

    def to_descriptors(self) -> List[Dict[str, Any]]:
        return [m.as_dict() for m in self.visible_markers()]
