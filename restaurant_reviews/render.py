"""HTML fragments for restaurant thumbnails and facet selectors."""
from __future__ import annotations

import html
import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Optional

from . import config
from .models import Restaurant


def url_for_restaurant(restaurant: Restaurant) -> str:
    return config.REVIEW_URL_TEMPLATE.format(id=restaurant.id)


def image_url_for_restaurant(restaurant: Restaurant) -> Optional[str]:
    if not restaurant.photograph:
        return None
    return f"{config.IMAGE_URL_PREFIX}{restaurant.photograph}"


def responsive_image_html(url: str, alt: str, prefix: str = config.IMAGE_RELATIVE_PREFIX) -> str:
    """``<picture>`` markup with small 1x/2x/3x variants for narrow viewports."""
    root, _ext = posixpath.splitext(url)
    base = html.escape(f"{prefix}{root}", quote=True)
    alt_attr = html.escape(alt, quote=True)
    small = ", ".join(f"{base}-100-{n}x.jpg {n}x" for n in (1, 2, 3))
    return (
        '<picture class="restaurant-img">'
        f'<source media="(max-width: 719px)" srcset="{small}">'
        f'<source media="(min-width: 720px)" srcset="{base}.jpg 1x">'
        f'<img class="restaurant-img" src="{base}.jpg" alt="{alt_attr}">'
        "</picture>"
    )


@dataclass
class Thumbnail:
    """A list item whose image markup is held back until the item is revealed."""

    restaurant_id: int
    fragment: str
    image_ref: Optional[str]
    revealed: bool = False

    def materialize(self) -> str:
        if not self.image_ref:
            return self.fragment
        # Image goes first inside the <li>, right after its opening tag.
        cut = self.fragment.index(">") + 1
        return self.fragment[:cut] + self.image_ref + self.fragment[cut:]

    def reveal(self) -> str:
        self.revealed = True
        return self.materialize()


def render_thumbnail(restaurant: Restaurant) -> Thumbnail:
    label_id = f"restaurant-{restaurant.id}"
    fragment = (
        f'<li role="banner" aria-labelledby="{label_id}">'
        f'<div id="{label_id}">'
        f'<h2 role="heading">{html.escape(restaurant.name)}</h2>'
        f"<p>{html.escape(restaurant.neighborhood)}</p>"
        f"<p>{html.escape(restaurant.address)}</p>"
        "</div>"
        f'<a role="link" href="{html.escape(url_for_restaurant(restaurant), quote=True)}">View Details</a>'
        "</li>"
    )
    image_url = image_url_for_restaurant(restaurant)
    image_ref = None
    if image_url:
        image_ref = responsive_image_html(image_url, f"Image of {restaurant.name} restaurant")
    return Thumbnail(restaurant_id=restaurant.id, fragment=fragment, image_ref=image_ref)


def render_option(value: str, label: Optional[str] = None) -> str:
    text = html.escape(label if label is not None else value)
    return f'<option value="{html.escape(value, quote=True)}">{text}</option>'


def render_map_container(center: Dict[str, float], zoom: int, **attrs: Any) -> str:
    extra = "".join(f' data-{html.escape(k)}="{html.escape(str(v), quote=True)}"' for k, v in attrs.items())
    return (
        f'<div id="map" role="application" data-lat="{center["lat"]}" '
        f'data-lng="{center["lng"]}" data-zoom="{zoom}"{extra}></div>'
    )
