"""Facet derivation and facet filtering over restaurant streams."""
from __future__ import annotations

from typing import Iterable, Union

from . import config
from .models import Restaurant
from .stream import Stream

RecordSource = Union[Stream[Restaurant], Iterable[Restaurant]]


def _as_stream(records: RecordSource) -> Stream[Restaurant]:
    if isinstance(records, Stream):
        return records
    return Stream.from_iterable(records)


def derive_facet(records: RecordSource, field: str) -> Stream[str]:
    """Distinct values of ``field`` in first-seen order.

    The seen-set lives inside this one derivation; a new call starts empty.
    """
    if field not in config.FACET_FIELDS:
        raise ValueError(f"Unknown facet field {field!r}; expected one of {config.FACET_FIELDS}")
    return _as_stream(records).map(lambda r: getattr(r, field)).distinct()


def derive_neighborhoods(records: RecordSource) -> Stream[str]:
    return derive_facet(records, "neighborhood")


def derive_cuisines(records: RecordSource) -> Stream[str]:
    return derive_facet(records, "cuisine_type")


def matches_facets(record: Restaurant, cuisine: str, neighborhood: str) -> bool:
    return (cuisine == config.WILDCARD or record.cuisine_type == cuisine) and (
        neighborhood == config.WILDCARD or record.neighborhood == neighborhood
    )


def filter_by_facets(records: RecordSource, cuisine: str, neighborhood: str) -> Stream[Restaurant]:
    return _as_stream(records).filter(lambda r: matches_facets(r, cuisine, neighborhood))


def filter_by_cuisine(records: RecordSource, cuisine: str) -> Stream[Restaurant]:
    return filter_by_facets(records, cuisine, config.WILDCARD)


def filter_by_neighborhood(records: RecordSource, neighborhood: str) -> Stream[Restaurant]:
    return filter_by_facets(records, config.WILDCARD, neighborhood)
