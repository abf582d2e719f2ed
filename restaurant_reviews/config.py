"""Project configuration.

Loads overrides from app_config.json when available, falling back to
sensible defaults. Keep endpoint and store shapes centralized here.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

API_URL = "http://localhost:1337"
API_RESTAURANTS_PATH = "/restaurants/"

# --- Persistent store ---

DATABASE_NAME = "restaurants"
DATABASE_VERSION = 1
DATABASE_SCHEMA = "id++,name,neighborhood,cuisine_type"
DATABASE_PATH = "restaurants.db"
STORE_COMMIT_EVERY = 1

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 10

# --- Facets ---

WILDCARD = "all"
FACET_FIELDS = ("neighborhood", "cuisine_type")

# --- View ---

IMAGE_URL_PREFIX = "/img/"
IMAGE_RELATIVE_PREFIX = "."
REVIEW_URL_TEMPLATE = "./review/{id}"
VIEWPORT_SIZE: Tuple[int, int] = (720, 800)
TILE_SIZE: Tuple[int, int] = (180, 200)
# 0 keeps the exact "scrolled to the very bottom" check.
SCROLL_BOTTOM_TOLERANCE_PX = 0

# --- Map ---

MAP_CENTER: Dict[str, float] = {"lat": 40.722216, "lng": -73.987501}
MAP_ZOOM = 12

# --- Outputs ---

OUTPUT_DIR = "out"


def restaurants_url(api_url: Optional[str] = None) -> str:
    base = (api_url or API_URL).rstrip("/")
    return f"{base}{API_RESTAURANTS_PATH}"


def restaurant_url(restaurant_id: int, api_url: Optional[str] = None) -> str:
    return f"{restaurants_url(api_url)}{restaurant_id}"


def _size_pair(value: Any) -> Tuple[int, int]:
    width, height = value
    return int(width), int(height)


def load_app_config(path: Optional[str] = None) -> bool:
    """Load configuration overrides from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "app_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    api = data.get("api", {})
    if api.get("url"):
        globals_ref["API_URL"] = str(api["url"]).rstrip("/")
    if api.get("timeout_seconds") is not None:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = float(api["timeout_seconds"])

    database = data.get("database", {})
    if database.get("path"):
        globals_ref["DATABASE_PATH"] = str(database["path"])
    if database.get("version") is not None:
        globals_ref["DATABASE_VERSION"] = int(database["version"])
    if database.get("schema"):
        globals_ref["DATABASE_SCHEMA"] = str(database["schema"])

    view = data.get("view", {})
    if view.get("viewport"):
        globals_ref["VIEWPORT_SIZE"] = _size_pair(view["viewport"])
    if view.get("tile"):
        globals_ref["TILE_SIZE"] = _size_pair(view["tile"])
    if view.get("scroll_bottom_tolerance_px") is not None:
        globals_ref["SCROLL_BOTTOM_TOLERANCE_PX"] = int(view["scroll_bottom_tolerance_px"])

    map_cfg = data.get("map", {})
    center = map_cfg.get("center", {})
    if center.get("lat") is not None and center.get("lng") is not None:
        globals_ref["MAP_CENTER"] = {"lat": float(center["lat"]), "lng": float(center["lng"])}
    if map_cfg.get("zoom") is not None:
        globals_ref["MAP_ZOOM"] = int(map_cfg["zoom"])

    if data.get("output_dir"):
        globals_ref["OUTPUT_DIR"] = str(data["output_dir"])

    return True
