"""HTTP client with request accounting for the restaurants feed."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import NetworkError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class RequestMetrics:
    network_requests: int = 0
    network_failures: int = 0
    store_writes: int = 0
    store_write_failures: int = 0

    def inc_network(self, failed: bool = False) -> None:
        self.network_requests += 1
        if failed:
            self.network_failures += 1

    def inc_store_write(self, failed: bool = False) -> None:
        self.store_writes += 1
        if failed:
            self.store_write_failures += 1

    def as_dict(self) -> Dict[str, int]:
        return {
            "network_requests": self.network_requests,
            "network_failures": self.network_failures,
            "store_writes": self.store_writes,
            "store_write_failures": self.store_write_failures,
        }


class HttpClient:
    """Thin wrapper over a requests session. Failures are never retried."""

    def __init__(
        self,
        timeout: float = 10,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.timeout = timeout
        self.metrics = metrics
        self.session = requests.Session()

    def get_json(self, url: str) -> Any:
        try:
            resp = self.session.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.RequestException as exc:
            self._count(failed=True)
            logger.error("GET %s failed: %s", url, exc)
            raise NetworkError(f"GET {url} failed: {exc}") from exc

        status = resp.status_code
        if status == 404:
            self._count(failed=True)
            raise NotFoundError(f"GET {url} returned 404")
        if not 200 <= status < 300:
            self._count(failed=True)
            logger.error("HTTP %s from %s", status, url)
            raise NetworkError(f"GET {url} returned HTTP {status}")

        try:
            payload = resp.json()
        except ValueError as exc:
            self._count(failed=True)
            logger.error("Non-JSON response from %s", url)
            raise NetworkError(f"GET {url} returned a non-JSON body") from exc
        self._count()
        return payload

    def head_status(self, url: str) -> int:
        try:
            resp = self.session.head(url, timeout=self.timeout)
        except requests.RequestException as exc:
            self._count(failed=True)
            logger.error("HEAD %s failed: %s", url, exc)
            raise NetworkError(f"HEAD {url} failed: {exc}") from exc
        self._count()
        return int(resp.status_code)

    def close(self) -> None:
        self.session.close()

    def _count(self, failed: bool = False) -> None:
        if self.metrics is not None:
            self.metrics.inc_network(failed=failed)
