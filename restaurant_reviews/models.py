"""Restaurant record shared by the remote, store and view layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

_KNOWN_FIELDS = (
    "id",
    "name",
    "neighborhood",
    "cuisine_type",
    "address",
    "latlng",
    "photograph",
    "operating_hours",
    "reviews",
)


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Restaurant:
    id: int
    name: str = ""
    neighborhood: str = ""
    cuisine_type: str = ""
    address: str = ""
    latlng: Optional[LatLng] = None
    photograph: Optional[str] = None
    operating_hours: Any = None
    reviews: Tuple[Any, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Restaurant":
        if not isinstance(data, Mapping):
            raise ValueError(f"Restaurant payload must be an object, got {type(data).__name__}")
        raw_id = data.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"Restaurant payload has no integer id: {raw_id!r}")
        return cls(
            id=raw_id,
            name=_str_or_empty(data.get("name")),
            neighborhood=_str_or_empty(data.get("neighborhood")),
            cuisine_type=_str_or_empty(data.get("cuisine_type")),
            address=_str_or_empty(data.get("address")),
            latlng=_parse_latlng(data.get("latlng")),
            photograph=_photograph_key(data.get("photograph")),
            operating_hours=data.get("operating_hours"),
            reviews=tuple(data.get("reviews") or ()),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "name": self.name,
                "neighborhood": self.neighborhood,
                "cuisine_type": self.cuisine_type,
                "address": self.address,
                "latlng": self.latlng.as_dict() if self.latlng else None,
                "photograph": self.photograph,
                "operating_hours": self.operating_hours,
                "reviews": list(self.reviews),
            }
        )
        return out


def _str_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _photograph_key(value: Any) -> Optional[str]:
    # Some feeds send the image key as a bare number.
    if value is None or value == "":
        return None
    return str(value)


def _parse_latlng(value: Any) -> Optional[LatLng]:
    if not isinstance(value, Mapping):
        return None
    lat = value.get("lat", value.get("latitude"))
    lng = value.get("lng", value.get("lon", value.get("longitude")))
    try:
        return LatLng(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError):
        return None
