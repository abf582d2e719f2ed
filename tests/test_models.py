import pytest

from restaurant_reviews.errors import NetworkError, Result
from restaurant_reviews.events import EventLoop
from restaurant_reviews.models import LatLng, Restaurant


def test_from_dict_parses_known_fields():
    restaurant = Restaurant.from_dict(
        {
            "id": 1,
            "name": "Mission Chinese Food",
            "neighborhood": "Manhattan",
            "cuisine_type": "Asian",
            "latlng": {"latitude": "40.71", "longitude": -73.98},
            "reviews": [{"rating": 4}],
        }
    )
    assert restaurant.latlng == LatLng(40.71, -73.98)
    assert restaurant.reviews == ({"rating": 4},)
    assert restaurant.photograph is None


@pytest.mark.parametrize("payload", [None, [], {"name": "x"}, {"id": "1"}, {"id": True}])
def test_from_dict_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        Restaurant.from_dict(payload)


def test_bad_latlng_is_dropped():
    assert Restaurant.from_dict({"id": 1, "latlng": {"lat": "north"}}).latlng is None


def test_result():
    assert Result.success(3).unwrap() == 3
    failed = Result.failure(NetworkError("down"))
    assert not failed.ok
    with pytest.raises(NetworkError):
        failed.unwrap()


def test_event_loop_runs_fifo_including_nested_callbacks():
    loop = EventLoop()
    calls = []

    def first():
        calls.append("first")
        loop.call_soon(calls.append, "nested")

    loop.call_soon(first)
    loop.call_soon(calls.append, "second")

    assert loop.run_pending() == 3
    assert calls == ["first", "second", "nested"]
    assert loop.pending == 0


def test_event_loop_limit_and_reentrance():
    loop = EventLoop()
    loop.call_soon(lambda: None)
    loop.call_soon(loop.run_pending)

    assert loop.run_pending(limit=1) == 1
    assert loop.pending == 1
    with pytest.raises(RuntimeError):
        loop.run_pending()
    assert loop.pending == 0
