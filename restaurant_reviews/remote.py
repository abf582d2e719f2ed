"""Remote restaurants feed with response parsing."""
from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional

from . import config
from .errors import NetworkError, NotFoundError
from .http import HttpClient
from .models import Restaurant
from .stream import Stream

logger = logging.getLogger(__name__)

_NO_UPDATE_STATUSES = (304, 404)


class RemoteSource:
    def __init__(self, http_client: HttpClient, api_url: Optional[str] = None) -> None:
        self.http = http_client
        self.api_url = (api_url or config.API_URL).rstrip("/")

    def fetch_all(self) -> Stream[Restaurant]:
        """Stream every restaurant once, in payload order.

        Nothing is requested until the stream is consumed. Any failure (transport,
        status, payload) surfaces as ``NetworkError`` from the consuming loop.
        """
        url = config.restaurants_url(self.api_url)

        def generate() -> Iterator[Restaurant]:
            try:
                payload = self.http.get_json(url)
            except NotFoundError as exc:
                raise NetworkError(str(exc)) from exc
            records = parse_restaurants_response(payload)
            logger.info("Fetched %s restaurants from %s", len(records), url)
            yield from records

        return Stream(generate())

    def fetch_by_id(self, restaurant_id: int) -> Restaurant:
        url = config.restaurant_url(restaurant_id, self.api_url)
        payload = self.http.get_json(url)
        try:
            return Restaurant.from_dict(payload)
        except ValueError as exc:
            raise NetworkError(f"Malformed restaurant payload from {url}: {exc}") from exc

    def needs_update(self) -> bool:
        status = self.http.head_status(config.restaurants_url(self.api_url))
        return status not in _NO_UPDATE_STATUSES


def parse_restaurants_response(payload: Any) -> List[Restaurant]:
    if not isinstance(payload, list):
        raise NetworkError(f"Expected a JSON array of restaurants, got {type(payload).__name__}")
    parsed: List[Restaurant] = []
    for idx, item in enumerate(payload):
        try:
            parsed.append(Restaurant.from_dict(item))
        except ValueError as exc:
            raise NetworkError(f"Malformed restaurant at index {idx}: {exc}") from exc
    return parsed
