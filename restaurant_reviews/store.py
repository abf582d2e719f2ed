"""SQLite-backed offline store for restaurant records."""
from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, List, Set, Tuple

from . import config
from .errors import NotFoundError, StoreInitError, StoreWriteError
from .models import Restaurant

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass(frozen=True)
class StoreSchema:
    table: str
    primary_key: str
    auto_increment: bool
    indexes: Tuple[str, ...]


def parse_store_schema(spec: str, table: str = config.DATABASE_NAME) -> StoreSchema:
    """Parse the compact ``"id++,name,neighborhood"`` schema notation.

    The first entry is the primary key (``++`` before or after it marks
    auto-increment); the remaining entries are secondary indexes.
    """
    parts = [p.strip() for p in (spec or "").split(",") if p.strip()]
    if not parts:
        raise ValueError("Store schema must name at least a primary key")
    primary = parts[0]
    auto_increment = primary.startswith("++") or primary.endswith("++")
    primary = primary.strip("+")
    indexes = tuple(parts[1:])
    for name in (table, primary) + indexes:
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid identifier in store schema: {name!r}")
    if len(set(indexes)) != len(indexes) or primary in indexes:
        raise ValueError(f"Duplicate field in store schema: {spec!r}")
    return StoreSchema(table=table, primary_key=primary, auto_increment=auto_increment, indexes=indexes)


class RestaurantStore:
    def __init__(
        self,
        db_path: str,
        schema: StoreSchema,
        version: int,
        commit_every: int = config.STORE_COMMIT_EVERY,
    ) -> None:
        if int(version) < 1:
            raise ValueError("Store version must be a positive integer")
        self.db_path = db_path
        self.schema = schema
        self.version = int(version)
        self._pending_writes = 0
        self._commit_every = max(1, int(commit_every))
        try:
            self.conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreInitError(f"Cannot open store at {db_path}: {exc}") from exc
        try:
            self.conn.row_factory = sqlite3.Row
            self._configure_conn()
            self._init_db()
        except sqlite3.DatabaseError as exc:
            self.conn.close()
            raise StoreInitError(f"Cannot open store at {db_path}: {exc}") from exc
        except StoreInitError:
            self.conn.close()
            raise

    @classmethod
    def open(
        cls,
        db_path: str = config.DATABASE_PATH,
        version: int = config.DATABASE_VERSION,
        schema: str = config.DATABASE_SCHEMA,
        name: str = config.DATABASE_NAME,
        commit_every: int = config.STORE_COMMIT_EVERY,
    ) -> "RestaurantStore":
        store = cls(db_path, parse_store_schema(schema, table=name), version, commit_every=commit_every)
        logger.info("Opened store %s (table=%s, version=%s)", db_path, name, store.version)
        return store

    def __enter__(self) -> "RestaurantStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _configure_conn(self) -> None:
        if self.db_path == ":memory:":
            return
        cur = self.conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.fetchone()
        cur.execute("PRAGMA synchronous=NORMAL")

    def _persisted_version(self) -> int:
        row = self.conn.execute("PRAGMA user_version").fetchone()
        return int(row[0])

    def _existing_indexes(self) -> Set[str]:
        prefix = f"idx_{self.schema.table}_"
        rows = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = ?",
            (self.schema.table,),
        ).fetchall()
        return {row["name"][len(prefix):] for row in rows if row["name"].startswith(prefix)}

    def _existing_columns(self) -> Set[str]:
        rows = self.conn.execute(f"PRAGMA table_info({self.schema.table})").fetchall()
        return {row["name"] for row in rows}

    def _init_db(self) -> None:
        persisted = self._persisted_version()
        wanted = set(self.schema.indexes)
        if persisted > self.version:
            raise StoreInitError(
                f"Store {self.db_path} is at version {persisted}, cannot open at older version {self.version}"
            )
        if persisted == self.version and self._existing_indexes() != wanted:
            raise StoreInitError(
                f"Store {self.db_path} schema changed at version {self.version}; bump the version"
            )

        table = self.schema.table
        pk = self.schema.primary_key
        pk_decl = "INTEGER PRIMARY KEY AUTOINCREMENT" if self.schema.auto_increment else "INTEGER PRIMARY KEY"
        index_cols = "".join(f"                {col} TEXT,\n" for col in self.schema.indexes)
        cur = self.conn.cursor()
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                {pk} {pk_decl},
{index_cols}                record_json TEXT NOT NULL,
                updated_at TEXT
            )
            """
        )

        if persisted < self.version:
            columns = self._existing_columns()
            for col in self.schema.indexes:
                if col not in columns:
                    cur.execute(f"ALTER TABLE {table} ADD COLUMN {col} TEXT")
                    cur.execute(f"UPDATE {table} SET {col} = json_extract(record_json, '$.{col}')")
            for stale in self._existing_indexes() - wanted:
                cur.execute(f"DROP INDEX IF EXISTS idx_{table}_{stale}")
            for col in self.schema.indexes:
                cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_{col} ON {table} ({col})")
            cur.execute(f"PRAGMA user_version = {self.version}")
            if persisted:
                logger.info("Upgraded store %s from version %s to %s", self.db_path, persisted, self.version)
        self.conn.commit()

    def _mark_dirty(self) -> None:
        self._pending_writes += 1
        if self._pending_writes >= self._commit_every:
            self.commit()

    def commit(self) -> None:
        if self._pending_writes:
            self.conn.commit()
            self._pending_writes = 0

    def close(self) -> None:
        self.commit()
        self.conn.close()

    def upsert(self, record: Restaurant) -> None:
        """Insert or replace ``record`` keyed by its id."""
        columns = [self.schema.primary_key, *self.schema.indexes, "record_json", "updated_at"]
        placeholders = ", ".join("?" for _ in columns)
        try:
            data = record.to_dict()
            values = [
                data.get(self.schema.primary_key),
                *(data.get(col) for col in self.schema.indexes),
                json.dumps(data, ensure_ascii=False),
                utc_now_iso(),
            ]
            self.conn.execute(
                f"INSERT OR REPLACE INTO {self.schema.table} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            self._mark_dirty()
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise StoreWriteError(f"Failed to upsert restaurant {record.id}: {exc}") from exc
        logger.debug("Upserted restaurant %s", record.id)

    def count(self) -> int:
        row = self.conn.execute(f"SELECT COUNT(*) FROM {self.schema.table}").fetchone()
        return int(row[0])

    def is_empty(self) -> bool:
        return self.count() == 0

    def entry_exists(self, restaurant_id: int) -> bool:
        row = self.conn.execute(
            f"SELECT 1 FROM {self.schema.table} WHERE {self.schema.primary_key} = ?",
            (restaurant_id,),
        ).fetchone()
        return row is not None

    def get_by_key(self, restaurant_id: int) -> Restaurant:
        row = self.conn.execute(
            f"SELECT record_json FROM {self.schema.table} WHERE {self.schema.primary_key} = ?",
            (restaurant_id,),
        ).fetchone()
        if not row:
            raise NotFoundError(f"Restaurant {restaurant_id} is not in the store")
        return Restaurant.from_dict(json.loads(row["record_json"]))

    def all_records(self) -> Iterator[Restaurant]:
        rows = self.conn.execute(
            f"SELECT record_json FROM {self.schema.table} ORDER BY {self.schema.primary_key}"
        ).fetchall()
        for row in rows:
            yield Restaurant.from_dict(json.loads(row["record_json"]))

    def find_by_index(self, index: str, value: str) -> List[Restaurant]:
        if index not in self.schema.indexes:
            raise ValueError(f"Unknown index {index!r}; expected one of {list(self.schema.indexes)}")
        rows = self.conn.execute(
            f"SELECT record_json FROM {self.schema.table} WHERE {index} = ? ORDER BY {self.schema.primary_key}",
            (value,),
        ).fetchall()
        return [Restaurant.from_dict(json.loads(row["record_json"])) for row in rows]

    def delete(self) -> None:
        """Drop the whole store. The handle is unusable afterwards."""
        self.conn.close()
        delete_store_files(self.db_path)


def delete_store_files(db_path: str) -> bool:
    if db_path == ":memory:":
        return False
    removed = False
    for suffix in ("", "-wal", "-shm"):
        path = f"{db_path}{suffix}"
        if os.path.exists(path):
            os.remove(path)
            removed = True
    if removed:
        logger.info("Deleted store %s", db_path)
    return removed
