import json
from pathlib import Path

import pytest

from restaurant_reviews import config
from restaurant_reviews.errors import NotFoundError, StoreInitError, StoreWriteError
from restaurant_reviews.models import Restaurant
from restaurant_reviews.store import RestaurantStore, delete_store_files, parse_store_schema


def load_fixture(name):
    path = Path(__file__).parent / "fixtures" / name
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _restaurants():
    return [Restaurant.from_dict(item) for item in load_fixture("restaurants.json")]


def test_parse_store_schema():
    schema = parse_store_schema("id++,name,neighborhood,cuisine_type", table="restaurants")
    assert schema.table == "restaurants"
    assert schema.primary_key == "id"
    assert schema.auto_increment is True
    assert schema.indexes == ("name", "neighborhood", "cuisine_type")

    plain = parse_store_schema("id, name")
    assert plain.auto_increment is False
    assert plain.indexes == ("name",)


@pytest.mark.parametrize("spec", ["", "id,name,name", "id,id", "id,bad-name", "id;drop table x"])
def test_parse_store_schema_rejects_bad_specs(spec):
    with pytest.raises(ValueError):
        parse_store_schema(spec)


def test_upsert_is_idempotent_by_key(tmp_path):
    db_path = str(tmp_path / "restaurants.db")
    with RestaurantStore.open(db_path) as store:
        assert store.is_empty()
        for record in _restaurants():
            store.upsert(record)
        first = store.count()
        for record in _restaurants():
            store.upsert(record)
        assert store.count() == first == 7
        assert not store.is_empty()


def test_upsert_replaces_existing_record(tmp_path):
    with RestaurantStore.open(str(tmp_path / "r.db")) as store:
        store.upsert(Restaurant(id=1, name="Old", neighborhood="Queens", cuisine_type="Thai"))
        store.upsert(Restaurant(id=1, name="New", neighborhood="Queens", cuisine_type="Thai"))
        assert store.count() == 1
        assert store.get_by_key(1).name == "New"


def test_records_survive_reopen(tmp_path):
    db_path = str(tmp_path / "restaurants.db")
    with RestaurantStore.open(db_path) as store:
        for record in _restaurants():
            store.upsert(record)

    with RestaurantStore.open(db_path) as store:
        assert store.entry_exists(4)
        katz = store.get_by_key(4)
        assert katz.name == "Katz's Delicatessen"
        assert katz.latlng.lat == pytest.approx(40.722216)
        assert [r.id for r in store.all_records()] == [1, 2, 3, 4, 5, 6, 7]


def test_get_by_key_miss_raises_not_found(tmp_path):
    with RestaurantStore.open(str(tmp_path / "r.db")) as store:
        assert not store.entry_exists(99)
        with pytest.raises(NotFoundError):
            store.get_by_key(99)


def test_find_by_index(tmp_path):
    with RestaurantStore.open(str(tmp_path / "r.db")) as store:
        for record in _restaurants():
            store.upsert(record)
        assert [r.id for r in store.find_by_index("neighborhood", "Brooklyn")] == [2, 5, 6]
        assert [r.id for r in store.find_by_index("cuisine_type", "Asian")] == [1, 3]
        with pytest.raises(ValueError):
            store.find_by_index("address", "x")


def test_opening_at_older_version_fails(tmp_path):
    db_path = str(tmp_path / "r.db")
    RestaurantStore.open(db_path, version=2).close()

    with pytest.raises(StoreInitError):
        RestaurantStore.open(db_path, version=1)


def test_schema_change_without_version_bump_fails(tmp_path):
    db_path = str(tmp_path / "r.db")
    RestaurantStore.open(db_path, version=1).close()

    with pytest.raises(StoreInitError):
        RestaurantStore.open(db_path, version=1, schema=config.DATABASE_SCHEMA + ",address")


def test_version_upgrade_adds_and_backfills_index(tmp_path):
    db_path = str(tmp_path / "r.db")
    with RestaurantStore.open(db_path, version=1) as store:
        for record in _restaurants():
            store.upsert(record)

    with RestaurantStore.open(db_path, version=2, schema=config.DATABASE_SCHEMA + ",address") as store:
        assert store.count() == 7
        found = store.find_by_index("address", "919 Fulton St, Brooklyn, NY 11238")
        assert [r.id for r in found] == [2]


def test_write_after_close_raises_store_write_error(tmp_path):
    store = RestaurantStore.open(str(tmp_path / "r.db"))
    store.close()
    with pytest.raises(StoreWriteError):
        store.upsert(Restaurant(id=1, name="A"))


def test_delete_removes_store_files(tmp_path):
    db_path = tmp_path / "r.db"
    store = RestaurantStore.open(str(db_path))
    store.upsert(Restaurant(id=1, name="A"))
    store.delete()

    assert not db_path.exists()
    assert not delete_store_files(str(db_path))

    with RestaurantStore.open(str(db_path)) as fresh:
        assert fresh.is_empty()


def test_in_memory_store(tmp_path):
    with RestaurantStore.open(":memory:") as store:
        store.upsert(Restaurant(id=3, name="C"))
        assert store.count() == 1
    assert delete_store_files(":memory:") is False


def test_corrupt_file_raises_store_init_error(tmp_path):
    db_path = tmp_path / "r.db"
    db_path.write_bytes(b"this is not a sqlite database, not even close" * 20)
    with pytest.raises(StoreInitError):
        RestaurantStore.open(str(db_path))


def test_unserializable_record_raises_store_write_error(tmp_path):
    with RestaurantStore.open(str(tmp_path / "r.db")) as store:
        with pytest.raises(StoreWriteError):
            store.upsert(Restaurant(id=1, name="A", operating_hours={"Mon", "Tue"}))
        assert store.is_empty()
