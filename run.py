"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv as _load_dotenv

from restaurant_reviews import config
from restaurant_reviews.controller import RestaurantsController
from restaurant_reviews.errors import NetworkError, NotFoundError, StoreInitError
from restaurant_reviews.http import HttpClient, RequestMetrics
from restaurant_reviews.markers import InMemoryMap
from restaurant_reviews.remote import RemoteSource
from restaurant_reviews.reporting import (
    ensure_dir,
    render_summary,
    write_markers_json,
    write_slots,
    write_summary,
)
from restaurant_reviews.store import RestaurantStore, delete_store_files
from restaurant_reviews.viewport import Geometry


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync, filter and render restaurant listings")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--detail", type=int, default=None, help="Print one restaurant by id and exit")
    group.add_argument(
        "--check-update",
        action="store_true",
        help="Ask the feed whether the restaurant list changed and exit",
    )
    parser.add_argument("--cuisine", type=str, default=config.WILDCARD)
    parser.add_argument("--neighborhood", type=str, default=config.WILDCARD)
    parser.add_argument(
        "--viewport",
        type=Geometry.parse,
        default=Geometry(*config.VIEWPORT_SIZE),
        help="Viewport size as WIDTHxHEIGHT (default: %(default)s)",
    )
    parser.add_argument(
        "--tile",
        type=Geometry.parse,
        default=Geometry(*config.TILE_SIZE),
        help="Thumbnail tile size as WIDTHxHEIGHT",
    )
    parser.add_argument("--scrolls", type=int, default=1, help="Scroll-to-bottom events to simulate")
    parser.add_argument("--scroll-tolerance", type=float, default=config.SCROLL_BOTTOM_TOLERANCE_PX)
    parser.add_argument("--api-url", type=str, default=None)
    parser.add_argument("--db-path", type=str, default=None)
    parser.add_argument("--reset-store", action="store_true", help="Delete and recreate the offline store")
    parser.add_argument("--out", type=str, default=config.OUTPUT_DIR)
    return parser.parse_args(argv)


def open_cli_store(db_path: str, reset: bool = False) -> RestaurantStore:
    if reset:
        delete_store_files(db_path)
    return RestaurantStore.open(db_path, config.DATABASE_VERSION, config.DATABASE_SCHEMA)


def document_height(revealed: int, viewport: Geometry, tile: Geometry) -> float:
    columns = max(1, math.floor(viewport.width / tile.width))
    rows = math.ceil(revealed / columns)
    return max(viewport.height, rows * tile.height)


def simulate_scrolls(controller: RestaurantsController, viewport: Geometry, tile: Geometry, count: int) -> int:
    """Feed ``count`` scroll-to-bottom events through the controller's event loop."""
    revealed = 0
    for _ in range(max(0, count)):
        height = document_height(revealed, viewport, tile)
        controller.dispatch_scroll(height - viewport.height, viewport, height, tile)
        controller.loop.run_pending()
        revealed = sum(1 for t in controller.state.thumbnails if t.revealed)
    return revealed


def write_outputs(controller: RestaurantsController, map_widget: InMemoryMap, output_dir: str) -> None:
    ensure_dir(output_dir)
    write_slots(output_dir, controller.slots)
    write_markers_json(os.path.join(output_dir, "markers.json"), map_widget.to_descriptors())
    write_summary(os.path.join(output_dir, "summary.json"), controller.summary())


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    config.load_app_config()
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    api_url = args.api_url or os.environ.get("RESTAURANTS_API_URL") or config.API_URL
    db_path = args.db_path or os.environ.get("RESTAURANTS_DB_PATH") or config.DATABASE_PATH

    metrics = RequestMetrics()
    http_client = HttpClient(timeout=config.HTTP_TIMEOUT_SECONDS, metrics=metrics)
    remote = RemoteSource(http_client, api_url=api_url)

    if args.check_update:
        try:
            changed = remote.needs_update()
        except NetworkError as exc:
            print(f"Update check failed: {exc}", file=sys.stderr)
            return 1
        finally:
            http_client.close()
        print("Update available" if changed else "Up to date")
        return 0

    try:
        store = open_cli_store(db_path, reset=args.reset_store)
    except StoreInitError as exc:
        http_client.close()
        print(f"Store error: {exc}. Re-run with --reset-store to recreate it.", file=sys.stderr)
        return 2

    try:
        map_widget = InMemoryMap()
        controller = RestaurantsController(
            remote,
            store,
            map_widget,
            metrics=metrics,
            scroll_tolerance=args.scroll_tolerance,
        )

        if args.detail is not None:
            try:
                restaurant = controller.restaurant_detail(args.detail)
            except NotFoundError as exc:
                print(f"Not found: {exc}", file=sys.stderr)
                return 1
            except NetworkError as exc:
                print(f"Fetch error: {exc}", file=sys.stderr)
                return 1
            print(json.dumps(restaurant.to_dict(), ensure_ascii=False, indent=2))
            return 0

        result = controller.load()
        if result.ok and (args.cuisine != config.WILDCARD or args.neighborhood != config.WILDCARD):
            controller.dispatch_selection(args.cuisine, args.neighborhood)
            controller.loop.run_pending()
        simulate_scrolls(controller, args.viewport, args.tile, args.scrolls)
        controller.flush_writes()

        write_outputs(controller, map_widget, args.out)
        print(render_summary(controller.summary()))
        return 0 if result.ok else 1
    finally:
        store.close()
        http_client.close()


if __name__ == "__main__":
    sys.exit(main())
