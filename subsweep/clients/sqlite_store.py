"""SQLite-backed record store with DynamoDB-style (pk, sk) items."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from subsweep.clients.record_store import Item, Mutation, T


class SQLiteStore:
    """Key-value store using a normalized table keyed by (pk, sk)."""

    def __init__(self, db_path: str, *, busy_timeout_seconds: float = 30.0) -> None:
        self._db_path = Path(db_path)
        self._busy_timeout = busy_timeout_seconds
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._db_path,
            timeout=self._busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self, *, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        # IMMEDIATE takes the write lock up front so concurrent
        # read-modify-write cycles serialize instead of interleaving.
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    pk TEXT NOT NULL,
                    sk TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (pk, sk)
                )
                """
            )

    @staticmethod
    def _require_keys(item: Item) -> Tuple[str, str]:
        pk = item.get("pk")
        sk = item.get("sk")
        if not pk or not sk:
            raise ValueError("Item must include 'pk' and 'sk' keys")
        return pk, sk

    @staticmethod
    def _upsert(conn: sqlite3.Connection, pk: str, sk: str, item: Item) -> None:
        conn.execute(
            """
            INSERT INTO kv_records (pk, sk, data)
            VALUES (?, ?, ?)
            ON CONFLICT(pk, sk) DO UPDATE SET data = excluded.data
            """,
            (pk, sk, json.dumps(item)),
        )

    @staticmethod
    def _select(conn: sqlite3.Connection, pk: str, sk: str) -> Optional[Item]:
        row = conn.execute(
            "SELECT data FROM kv_records WHERE pk = ? AND sk = ?",
            (pk, sk),
        ).fetchone()
        if not row:
            return None
        return json.loads(row["data"])

    def put_item(self, item: Item) -> None:
        pk, sk = self._require_keys(item)
        with self._transaction() as conn:
            self._upsert(conn, pk, sk, item)

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Item]:
        with self._transaction() as conn:
            return self._select(conn, partition_key, sort_key)

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "DELETE FROM kv_records WHERE pk = ? AND sk = ?",
                (partition_key, sort_key),
            )

    def list_items_with_prefix(
        self, *, partition_key: str, sort_key_prefix: str
    ) -> list[Item]:
        """Return items under ``partition_key`` whose sort key starts with the prefix, in sk order."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT data FROM kv_records
                WHERE pk = ? AND substr(sk, 1, ?) = ?
                ORDER BY sk
                """,
                (partition_key, len(sort_key_prefix), sort_key_prefix),
            ).fetchall()
        return [json.loads(row["data"]) for row in rows]

    def transact_item(
        self, *, partition_key: str, sort_key: str, mutation: Mutation[T]
    ) -> T:
        """
        Atomically read, transform and write a single item.

        ``mutation`` receives the current item (or ``None``) and returns the
        item to write (or ``None`` to leave storage untouched) plus a result
        that is handed back to the caller.
        """
        with self._transaction(immediate=True) as conn:
            current = self._select(conn, partition_key, sort_key)
            updated, result = mutation(current)
            if updated is not None:
                updated = {**updated, "pk": partition_key, "sk": sort_key}
                self._upsert(conn, partition_key, sort_key, updated)
        return result


__all__ = ["SQLiteStore"]
