"""Index-page controller: wires the feed, the store and the view together."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from . import config, view
from .errors import NetworkError, Result, StoreWriteError
from .events import EventLoop
from .facets import derive_cuisines, derive_neighborhoods, filter_by_facets
from .http import RequestMetrics
from .markers import MapWidget, add_marker
from .models import Restaurant
from .remote import RemoteSource
from .render import Thumbnail, render_map_container, render_option, render_thumbnail
from .state import AppState, StateContainer
from .store import RestaurantStore
from .stream import Stream
from .viewport import Geometry, compute_reveal_batch, is_scroll_bottom

logger = logging.getLogger(__name__)


class RestaurantsController:
    def __init__(
        self,
        remote: RemoteSource,
        store: Optional[RestaurantStore],
        map_widget: MapWidget,
        slots: Optional[view.ViewSlots] = None,
        loop: Optional[EventLoop] = None,
        navigate: Optional[Callable[[str], Any]] = None,
        metrics: Optional[RequestMetrics] = None,
        scroll_tolerance: float = config.SCROLL_BOTTOM_TOLERANCE_PX,
    ) -> None:
        self.remote = remote
        self.slots = slots or view.ViewSlots()
        self.loop = loop or EventLoop()
        self.metrics = metrics
        self.scroll_tolerance = scroll_tolerance
        self.navigations: List[str] = []
        self._navigate = navigate or self.navigations.append
        self.container = StateContainer()
        self.container.set_state(store=store, map=map_widget)
        center = getattr(map_widget, "center", config.MAP_CENTER)
        zoom = getattr(map_widget, "zoom", config.MAP_ZOOM)
        self.slots.replace(view.MAP, render_map_container(center, zoom))

    @property
    def state(self) -> AppState:
        return self.container.state

    # --- Data arrival ---

    def load(self) -> Result[int]:
        """Fetch every restaurant, stage it for the view and derive the facet lists."""
        result = self._stream_into_view(self._fetch_records(), config.WILDCARD, config.WILDCARD)
        if result.ok:
            self.fetch_neighborhoods()
            self.fetch_cuisines()
            logger.info(
                "Loaded %s restaurants (%s neighborhoods, %s cuisines)",
                result.value,
                len(self.state.neighborhoods),
                len(self.state.cuisines),
            )
        return result

    def update_restaurants(self, cuisine: str, neighborhood: str) -> Result[int]:
        """Replace the result set with restaurants matching the selected facets."""
        stream = filter_by_facets(self._fetch_records(), cuisine, neighborhood)
        result = self._stream_into_view(stream, cuisine, neighborhood)
        if result.ok:
            logger.info(
                "Showing %s restaurants for cuisine=%s neighborhood=%s", result.value, cuisine, neighborhood
            )
        return result

    def fetch_neighborhoods(self) -> List[str]:
        values = derive_neighborhoods(self.state.restaurants).to_list()
        self.container.set_state(neighborhoods=tuple(values))
        self._fill_select(view.NEIGHBORHOODS_SELECT, values)
        return values

    def fetch_cuisines(self) -> List[str]:
        values = derive_cuisines(self.state.restaurants).to_list()
        self.container.set_state(cuisines=tuple(values))
        self._fill_select(view.CUISINES_SELECT, values)
        return values

    def restaurant_detail(self, restaurant_id: int) -> Restaurant:
        try:
            return self.remote.fetch_by_id(restaurant_id)
        except NetworkError as exc:
            store = self.state.store
            if store is None or not store.entry_exists(restaurant_id):
                raise
            logger.warning("Serving restaurant %s from the offline store: %s", restaurant_id, exc)
            return store.get_by_key(restaurant_id)

    # --- User events ---

    def dispatch_scroll(
        self, scroll_y: float, viewport: Geometry, document_height: float, tile: Geometry
    ) -> None:
        self.loop.call_soon(self.handle_scroll, scroll_y, viewport, document_height, tile)

    def dispatch_selection(self, cuisine: str, neighborhood: str) -> None:
        self.loop.call_soon(self.update_restaurants, cuisine, neighborhood)

    def handle_scroll(
        self, scroll_y: float, viewport: Geometry, document_height: float, tile: Geometry
    ) -> List[Thumbnail]:
        if not is_scroll_bottom(scroll_y, viewport.height, document_height, self.scroll_tolerance):
            return []
        if not len(self.state.thumbnails):
            return []
        return self.reveal_next_batch(viewport, tile)

    def reveal_next_batch(self, viewport: Geometry, tile: Geometry) -> List[Thumbnail]:
        batch = compute_reveal_batch(viewport, tile, self.state.thumbnails.pending())
        for thumb in batch:
            self.slots.append(view.RESTAURANTS_LIST, thumb.reveal())
        logger.debug("Revealed %s thumbnails", len(batch))
        return batch

    def flush_writes(self) -> int:
        return self.loop.run_pending()

    def summary(self) -> Dict[str, Any]:
        state = self.state
        thumbnails = list(state.thumbnails)
        out: Dict[str, Any] = {
            "restaurants": len(state.restaurants),
            "neighborhoods": list(state.neighborhoods),
            "cuisines": list(state.cuisines),
            "selected_cuisine": state.selected_cuisine,
            "selected_neighborhood": state.selected_neighborhood,
            "offline": state.offline,
            "markers": len(state.markers),
            "thumbnails": len(thumbnails),
            "revealed": sum(1 for t in thumbnails if t.revealed),
            "navigations": list(self.navigations),
        }
        if self.metrics is not None:
            out["requests"] = self.metrics.as_dict()
        return out

    # --- Internals ---

    def _fetch_records(self) -> Stream[Restaurant]:
        """Remote records, or the offline store's records if the feed is unreachable."""

        def generate() -> Iterator[Restaurant]:
            delivered = 0
            try:
                for record in self.remote.fetch_all():
                    if not delivered:
                        self.container.set_state(offline=False)
                    delivered += 1
                    yield record
            except NetworkError as exc:
                store = self.state.store
                if delivered or store is None or store.is_empty():
                    raise
                logger.warning("Feed unavailable (%s); serving %s restaurants from the store", exc, store.count())
                self.container.set_state(offline=True)
                yield from store.all_records()
                return
            if not delivered:
                self.container.set_state(offline=False)

        return Stream(generate())

    def _stream_into_view(self, records: Stream[Restaurant], cuisine: str, neighborhood: str) -> Result[int]:
        # Reset, and record the selection, on the first record or on a clean
        # completion, never on failure.
        pending_reset = [True]

        def reset_once() -> None:
            if pending_reset:
                pending_reset.clear()
                self._reset_view()
                self.container.set_state(selected_cuisine=cuisine, selected_neighborhood=neighborhood)

        def on_next(record: Restaurant) -> None:
            reset_once()
            self._accept(record)

        def on_error(exc: Exception) -> None:
            if not isinstance(exc, NetworkError):
                raise exc
            logger.error("Could not load restaurants, keeping current view: %s", exc)

        return records.subscribe(on_next, on_error=on_error, on_complete=reset_once)

    def _reset_view(self) -> None:
        self.container.reset()
        self.slots.clear(view.RESTAURANTS_LIST)

    def _accept(self, record: Restaurant) -> None:
        self.container.append_restaurant(record)
        self.container.push_thumbnail(render_thumbnail(record))
        self.container.add_marker(add_marker(record, self.state.map, self._navigate))
        if not self.state.offline:
            self.loop.call_soon(self._persist, record)

    def _persist(self, record: Restaurant) -> Result[None]:
        store = self.state.store
        if store is None:
            return Result.success()
        try:
            store.upsert(record)
        except StoreWriteError as exc:
            logger.warning("Could not cache restaurant %s: %s", record.id, exc)
            if self.metrics is not None:
                self.metrics.inc_store_write(failed=True)
            return Result.failure(exc)
        if self.metrics is not None:
            self.metrics.inc_store_write()
        return Result.success()

    def _fill_select(self, slot: str, values: List[str]) -> None:
        self.slots.clear(slot)
        for value in values:
            self.slots.append(slot, render_option(value))
