import json
from pathlib import Path

import pytest
import requests

import run
from restaurant_reviews.http import HttpClient
from restaurant_reviews.store import RestaurantStore

API_URL = "http://feed.test"


def load_fixture(name):
    path = Path(__file__).parent / "fixtures" / name
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.headers = {}

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, online=True, head_status=200):
        self.online = online
        self.head_status = head_status
        self.restaurants = load_fixture("restaurants.json")

    def get(self, url, headers=None, timeout=None):
        if not self.online:
            raise requests.ConnectionError("connection refused")
        if url == f"{API_URL}/restaurants/":
            return FakeResponse(self.restaurants)
        for item in self.restaurants:
            if url == f"{API_URL}/restaurants/{item['id']}":
                return FakeResponse(item)
        return FakeResponse(status_code=404)

    def head(self, url, timeout=None):
        if not self.online:
            raise requests.ConnectionError("connection refused")
        return FakeResponse(status_code=self.head_status)

    def close(self):
        return None


@pytest.fixture
def session(monkeypatch):
    fake = FakeSession()

    def make_client(timeout=10, metrics=None):
        client = HttpClient(timeout=timeout, metrics=metrics)
        client.session = fake
        return client

    monkeypatch.setattr(run, "HttpClient", make_client)
    return fake


def _args(tmp_path, *extra):
    return [
        "--api-url",
        API_URL,
        "--db-path",
        str(tmp_path / "restaurants.db"),
        "--out",
        str(tmp_path / "out"),
        *extra,
    ]


def test_run_renders_outputs_and_caches_records(tmp_path, session, capsys):
    assert run.main(_args(tmp_path)) == 0

    out_dir = tmp_path / "out"
    listing = (out_dir / "restaurants-list.html").read_text(encoding="utf-8")
    assert listing.count("<li ") == 7
    markers = json.loads((out_dir / "markers.json").read_text(encoding="utf-8"))
    assert [m["url"] for m in markers][:2] == ["./review/1", "./review/2"]
    summary = json.loads((out_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["restaurants"] == 7
    assert summary["revealed"] == 7
    assert "Restaurants: 7 (revealed 7)" in capsys.readouterr().out

    with RestaurantStore.open(str(tmp_path / "restaurants.db")) as store:
        assert store.count() == 7


def test_run_with_filters(tmp_path, session):
    assert run.main(_args(tmp_path, "--cuisine", "Pizza", "--neighborhood", "Brooklyn")) == 0

    summary = json.loads((tmp_path / "out" / "summary.json").read_text(encoding="utf-8"))
    assert summary["restaurants"] == 2
    assert summary["selected_cuisine"] == "Pizza"
    assert summary["neighborhoods"] == ["Manhattan", "Brooklyn", "Queens"]


def test_run_falls_back_to_store_when_offline(tmp_path, session, capsys):
    assert run.main(_args(tmp_path)) == 0
    capsys.readouterr()

    session.online = False
    assert run.main(_args(tmp_path)) == 0

    out = capsys.readouterr().out
    assert "Served from the offline store" in out
    assert "Restaurants: 7" in out


def test_run_offline_with_empty_store_fails(tmp_path, session):
    session.online = False
    assert run.main(_args(tmp_path)) == 1


def test_run_store_version_conflict(tmp_path, session, capsys):
    RestaurantStore.open(str(tmp_path / "restaurants.db"), version=5).close()

    assert run.main(_args(tmp_path)) == 2
    assert "--reset-store" in capsys.readouterr().err

    assert run.main(_args(tmp_path, "--reset-store")) == 0


def test_detail(tmp_path, session, capsys):
    assert run.main(_args(tmp_path, "--detail", "4")) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "Katz's Delicatessen"

    assert run.main(_args(tmp_path, "--detail", "99")) == 1


@pytest.mark.parametrize("status,message", [(200, "Update available"), (304, "Up to date")])
def test_check_update(tmp_path, session, capsys, status, message):
    session.head_status = status
    assert run.main(_args(tmp_path, "--check-update")) == 0
    assert message in capsys.readouterr().out


def test_check_update_offline(tmp_path, session):
    session.online = False
    assert run.main(_args(tmp_path, "--check-update")) == 1


def test_document_height():
    viewport = run.Geometry(720, 800)
    tile = run.Geometry(180, 200)
    assert run.document_height(0, viewport, tile) == 800
    assert run.document_height(20, viewport, tile) == 1000
