"""Entity store protocol and the SQLite reference store."""

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from catalogia.cancellation import CancellationToken, check
from catalogia.errors import InvalidRequestError, StorageUnavailableError
from catalogia.filters import AllOf, AnyOf, EntityFilter, Leaf, Not
from catalogia.refs import DEFAULT_NAMESPACE, EntityRef, parse_entity_ref, ref_of
from catalogia.search import iter_search_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredEntity:
    """A stored entity document with its uid and canonical ref."""

    uid: str
    ref: str
    entity: dict[str, Any]


def _compile_filter(expr: EntityFilter, params: list[Any]) -> str:
    """Compile a filter tree into a WHERE fragment over the search table."""
    if isinstance(expr, Leaf):
        if expr.values is not None and not expr.values:
            return "0"
        params.append(expr.key)
        if expr.values is None:
            return "e.entity_id IN (SELECT entity_id FROM search WHERE key = ?)"
        placeholders = ", ".join("?" for _ in expr.values)
        params.extend(expr.values)
        return (
            "e.entity_id IN (SELECT entity_id FROM search "
            f"WHERE key = ? AND value IN ({placeholders}))"
        )
    elif isinstance(expr, Not):
        return f"NOT ({_compile_filter(expr.child, params)})"
    elif isinstance(expr, (AllOf, AnyOf)):
        if not expr.children:
            return "1" if isinstance(expr, AllOf) else "0"
        parts = [_compile_filter(c, params) for c in expr.children]
        joiner = " AND " if isinstance(expr, AllOf) else " OR "
        return f"({joiner.join(parts)})"
    raise ValueError(f"Unknown filter expression type: {type(expr)}")


class _MetadataEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None


class _EntityEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: str
    metadata: _MetadataEnvelope


@runtime_checkable
class EntityStoreProtocol(Protocol):
    """Scan and lookup primitives the query engine relies on."""

    def close(self) -> None: ...

    def scan_entities(
        self,
        filter_expr: EntityFilter | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> Iterator[StoredEntity]: ...

    def get_entities_by_refs(self, refs: Iterable[EntityRef]) -> dict[str, StoredEntity]: ...

    def get_entity_by_uid(self, uid: str) -> StoredEntity | None: ...

    def get_parent_refs(self, ref: EntityRef) -> list[str]: ...

    def delete_entity_by_uid(self, uid: str) -> bool: ...

    def upsert_entity(
        self, entity: dict[str, Any], parent_refs: Iterable[str | EntityRef] = ()
    ) -> StoredEntity: ...


class Repository:
    """SQLite-backed entity store with a key/value search index."""

    def __init__(
        self,
        db_path: str = ":memory:",
        *,
        batch_size: int = 1000,
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.db_path = db_path
        self._batch_size = batch_size
        self._default_namespace = default_namespace
        with self._guard("open"):
            self._conn = sqlite3.connect(db_path)
            self._create_tables()

    @contextlib.contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.error("SQLite failure during %s: %s", operation, e)
            raise StorageUnavailableError(operation, str(e)) from e

    def _create_tables(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS entities (
                entity_id INTEGER PRIMARY KEY AUTOINCREMENT,
                uid TEXT NOT NULL UNIQUE,
                entity_ref TEXT NOT NULL UNIQUE,
                entity_json TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS search (
                entity_id INTEGER NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_search_key_value ON search (key, value);
            CREATE INDEX IF NOT EXISTS idx_search_entity ON search (entity_id);
            CREATE TABLE IF NOT EXISTS entity_parents (
                parent_ref TEXT NOT NULL,
                child_ref TEXT NOT NULL,
                PRIMARY KEY (parent_ref, child_ref)
            );
            CREATE INDEX IF NOT EXISTS idx_parents_child ON entity_parents (child_ref);
            """
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row(r: tuple[Any, ...]) -> StoredEntity:
        return StoredEntity(uid=r[0], ref=r[1], entity=json.loads(r[2]))

    # --- Reads ---

    def scan_entities(
        self,
        filter_expr: EntityFilter | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> Iterator[StoredEntity]:
        """Yield entities in insertion order, pre-filtered by the search index."""
        params: list[Any] = []
        where = _compile_filter(filter_expr, params) if filter_expr is not None else "1"
        sql = (
            "SELECT e.entity_id, e.uid, e.entity_ref, e.entity_json FROM entities e "
            f"WHERE e.entity_id > ? AND {where} ORDER BY e.entity_id LIMIT ?"
        )
        last_id = 0
        while True:
            check(cancel)
            with self._guard("scan_entities"):
                rows = self._conn.execute(sql, [last_id, *params, self._batch_size]).fetchall()
            for r in rows:
                yield self._row(r[1:])
            if len(rows) < self._batch_size:
                break
            last_id = rows[-1][0]

    def get_entities_by_refs(self, refs: Iterable[EntityRef]) -> dict[str, StoredEntity]:
        wanted = sorted({r.canonical for r in refs})
        found: dict[str, StoredEntity] = {}
        for i in range(0, len(wanted), self._batch_size):
            chunk = wanted[i : i + self._batch_size]
            placeholders = ", ".join("?" for _ in chunk)
            with self._guard("get_entities_by_refs"):
                rows = self._conn.execute(
                    "SELECT uid, entity_ref, entity_json FROM entities "
                    f"WHERE entity_ref IN ({placeholders})",
                    chunk,
                ).fetchall()
            for r in rows:
                found[r[1]] = self._row(r)
        return found

    def get_entity_by_uid(self, uid: str) -> StoredEntity | None:
        with self._guard("get_entity_by_uid"):
            row = self._conn.execute(
                "SELECT uid, entity_ref, entity_json FROM entities WHERE uid = ?", (uid,)
            ).fetchone()
        return self._row(row) if row else None

    def get_parent_refs(self, ref: EntityRef) -> list[str]:
        with self._guard("get_parent_refs"):
            rows = self._conn.execute(
                "SELECT parent_ref FROM entity_parents WHERE child_ref = ? ORDER BY parent_ref",
                (ref.canonical,),
            ).fetchall()
        return [r[0] for r in rows]

    def count_entities(self) -> int:
        with self._guard("count_entities"):
            row = self._conn.execute("SELECT COUNT(*) FROM entities").fetchone()
        return row[0] if row else 0

    # --- Writes ---

    def upsert_entity(
        self, entity: dict[str, Any], parent_refs: Iterable[str | EntityRef] = ()
    ) -> StoredEntity:
        """Insert or replace an entity and its parent edges, keyed by ref."""
        try:
            envelope = _EntityEnvelope.model_validate(entity)
        except PydanticValidationError as e:
            raise InvalidRequestError(f"Entity envelope is invalid: {e.error_count()} errors")

        ref = ref_of(entity, self._default_namespace).canonical
        parents = sorted(
            {
                parse_entity_ref(p, default_namespace=self._default_namespace).canonical
                for p in parent_refs
            }
        )
        doc = json.loads(json.dumps(entity))

        with self._guard("upsert_entity"), self._conn:
            existing = self._conn.execute(
                "SELECT entity_id, uid FROM entities WHERE entity_ref = ?", (ref,)
            ).fetchone()
            uid = envelope.metadata.uid or (existing[1] if existing else str(uuid.uuid4()))
            clash = self._conn.execute(
                "SELECT entity_ref FROM entities WHERE uid = ? AND entity_ref != ?", (uid, ref)
            ).fetchone()
            if clash:
                raise InvalidRequestError(f"uid '{uid}' already belongs to {clash[0]}")
            doc["metadata"]["uid"] = uid
            body = json.dumps(doc)
            if existing:
                entity_id = existing[0]
                self._conn.execute(
                    "UPDATE entities SET uid = ?, entity_json = ? WHERE entity_id = ?",
                    (uid, body, entity_id),
                )
                self._conn.execute("DELETE FROM search WHERE entity_id = ?", (entity_id,))
            else:
                cur = self._conn.execute(
                    "INSERT INTO entities (uid, entity_ref, entity_json) VALUES (?, ?, ?)",
                    (uid, ref, body),
                )
                entity_id = cur.lastrowid
            self._conn.executemany(
                "INSERT INTO search (entity_id, key, value) VALUES (?, ?, ?)",
                [(entity_id, k, v) for k, v in iter_search_rows(doc, self._default_namespace)],
            )
            self._conn.execute("DELETE FROM entity_parents WHERE child_ref = ?", (ref,))
            self._conn.executemany(
                "INSERT INTO entity_parents (parent_ref, child_ref) VALUES (?, ?)",
                [(p, ref) for p in parents],
            )
        return StoredEntity(uid=uid, ref=ref, entity=doc)

    def delete_entity_by_uid(self, uid: str) -> bool:
        """Delete one entity; edges pointing at it from children are left dangling."""
        with self._guard("delete_entity_by_uid"), self._conn:
            row = self._conn.execute(
                "SELECT entity_id, entity_ref FROM entities WHERE uid = ?", (uid,)
            ).fetchone()
            if row is None:
                return False
            self._conn.execute("DELETE FROM search WHERE entity_id = ?", (row[0],))
            self._conn.execute("DELETE FROM entity_parents WHERE child_ref = ?", (row[1],))
            self._conn.execute("DELETE FROM entities WHERE entity_id = ?", (row[0],))
        return True


def open_repository(db_path: str | None = None, *, batch_size: int = 1000) -> Repository:
    """Open a repository; ``None`` gives a private in-memory store."""
    return Repository(db_path or ":memory:", batch_size=batch_size)
