"""Reveal-batch geometry for lazily shown thumbnails."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

from .render import Thumbnail


@dataclass(frozen=True)
class Geometry:
    width: float
    height: float

    @classmethod
    def parse(cls, value: str) -> "Geometry":
        """Parse ``"720x800"``."""
        try:
            width, height = value.lower().split("x", 1)
            return cls(float(width), float(height))
        except ValueError as exc:
            raise ValueError(f"Expected WIDTHxHEIGHT, got {value!r}") from exc


def reveal_batch_size(viewport: Geometry, tile: Geometry) -> int:
    """Tiles needed to fill one more viewport, at least one row of them."""
    if tile.width <= 0 or tile.height <= 0:
        raise ValueError(f"Tile dimensions must be positive, got {tile.width}x{tile.height}")
    columns = max(math.floor(viewport.width / tile.width), 0)
    rows = math.floor(viewport.height / tile.height)
    return columns * (rows if rows > 0 else 1)


def compute_reveal_batch(viewport: Geometry, tile: Geometry, pending: Iterable[Thumbnail]) -> List[Thumbnail]:
    size = reveal_batch_size(viewport, tile)
    batch: List[Thumbnail] = []
    if size <= 0:
        return batch
    for thumb in pending:
        if thumb.revealed:
            continue
        batch.append(thumb)
        if len(batch) >= size:
            break
    return batch


def is_scroll_bottom(
    scroll_y: float,
    viewport_height: float,
    document_height: float,
    tolerance: float = 0,
) -> bool:
    # Halves round up, matching browser Math.round.
    bottom = math.floor(document_height + 0.5)
    return abs(scroll_y + viewport_height - bottom) <= tolerance
