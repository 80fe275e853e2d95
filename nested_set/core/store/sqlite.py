"""
SQLite node store.

One connection per thread. A transaction is ``BEGIN IMMEDIATE``, which
takes the database write lock up front, so concurrent units of work are
serialized by SQLite itself and a busy timeout surfaces as
``LockTimeoutError``. Record locks from ``lock_node`` are therefore
implied by the transaction and only re-read the row.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..constants import NODES_TABLE
from ..exceptions import (
    LockTimeoutError,
    StoreConnectionError,
    StoreError,
    TransactionError,
)
from ..node import IntervalNode, NodeId
from .base import BaseNodeStore

logger = logging.getLogger(__name__)

SCHEMA_SQL: List[str] = [
    f"""
    CREATE TABLE IF NOT EXISTS {NODES_TABLE} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lft INTEGER NOT NULL,
        rgt INTEGER NOT NULL,
        parent_id INTEGER,
        payload TEXT,
        FOREIGN KEY (parent_id) REFERENCES {NODES_TABLE}(id)
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_{NODES_TABLE}_lft ON {NODES_TABLE}(lft)",
    f"CREATE INDEX IF NOT EXISTS idx_{NODES_TABLE}_rgt ON {NODES_TABLE}(rgt)",
    f"CREATE INDEX IF NOT EXISTS idx_{NODES_TABLE}_parent ON {NODES_TABLE}(parent_id)",
]

_COLUMNS = "id, lft, rgt, parent_id, payload"

# Parent match where NULL is its own group: (? IS NULL AND parent_id IS NULL) OR parent_id = ?
_SAME_PARENT = "((? IS NULL AND parent_id IS NULL) OR parent_id = ?)"


def _is_lock_error(error: sqlite3.Error) -> bool:
    text = str(error).lower()
    return "locked" in text or "busy" in text


class SQLiteNodeStore(BaseNodeStore):
    """SQLite-backed store; payload is kept as JSON text."""

    def __init__(self) -> None:
        super().__init__()
        self.db_path: Optional[Path] = None
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

    def connect(self, config: Dict[str, Any]) -> None:
        """
        Open the database and create the schema.

        Args:
            config: Configuration dict with 'path' and optional 'lock_timeout'

        Raises:
            StoreConnectionError: If the database cannot be opened
        """
        if not config.get("path"):
            raise StoreConnectionError("SQLite store requires 'path' in config")
        self.lock_timeout = float(config.get("lock_timeout", self.lock_timeout))

        try:
            self.db_path = Path(config["path"]).resolve()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info("SQLite store connecting to db_path=%s", self.db_path)
            conn = self._conn()
            for sql in SCHEMA_SQL:
                conn.execute(sql)
        except StoreError:
            raise
        except Exception as e:
            raise StoreConnectionError(
                f"Failed to open database: {e}", cause=e
            ) from e

    def disconnect(self) -> None:
        with self._connections_lock:
            for conn in self._connections:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.warning("Error closing SQLite connection: %s", e)
            self._connections = []
        self._local = threading.local()

    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        if self.db_path is None:
            raise StoreConnectionError("SQLite store is not connected")

        # Autocommit mode; transactions are opened explicitly with BEGIN IMMEDIATE
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.lock_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(f"PRAGMA busy_timeout = {int(self.lock_timeout * 1000)}")
        try:
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error as e:
            logger.warning(
                f"Failed to enable WAL mode for database {self.db_path}: {e}. "
                "Continuing without WAL mode."
            )
        self._local.conn = conn
        self._local.depth = 0
        with self._connections_lock:
            self._connections.append(conn)
        return conn

    def _execute(
        self, operation: str, sql: str, params: Tuple[Any, ...] = ()
    ) -> sqlite3.Cursor:
        try:
            return self._conn().execute(sql, params)
        except sqlite3.Error as e:
            if _is_lock_error(e):
                raise LockTimeoutError(
                    f"Database locked during {operation}: {e}",
                    timeout=self.lock_timeout,
                ) from e
            raise StoreError(
                f"{operation} failed: {e}", operation=operation, cause=e
            ) from e

    def _executemany(
        self, operation: str, sql: str, rows: List[Tuple[Any, ...]]
    ) -> sqlite3.Cursor:
        try:
            return self._conn().executemany(sql, rows)
        except sqlite3.Error as e:
            if _is_lock_error(e):
                raise LockTimeoutError(
                    f"Database locked during {operation}: {e}",
                    timeout=self.lock_timeout,
                ) from e
            raise StoreError(
                f"{operation} failed: {e}", operation=operation, cause=e
            ) from e

    @staticmethod
    def _to_node(row: sqlite3.Row) -> IntervalNode:
        payload = row["payload"]
        return IntervalNode(
            id=row["id"],
            left=row["lft"],
            right=row["rgt"],
            parent_id=row["parent_id"],
            payload=json.loads(payload) if payload else {},
        )

    def _fetchall(
        self, operation: str, where: str = "", params: Tuple[Any, ...] = (), order: str = "lft"
    ) -> List[IntervalNode]:
        sql = f"SELECT {_COLUMNS} FROM {NODES_TABLE}"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order}"
        rows = self._execute(operation, sql, params).fetchall()
        return [self._to_node(row) for row in rows]

    def _fetchone(
        self, operation: str, where: str, params: Tuple[Any, ...], order: str = "lft"
    ) -> Optional[IntervalNode]:
        sql = f"SELECT {_COLUMNS} FROM {NODES_TABLE} WHERE {where} ORDER BY {order} LIMIT 1"
        row = self._execute(operation, sql, params).fetchone()
        return self._to_node(row) if row else None

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def in_transaction(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    @contextmanager
    def transaction(self) -> Iterator["SQLiteNodeStore"]:
        conn = self._conn()
        if self._local.depth:
            self._local.depth += 1
            try:
                yield self
            finally:
                self._local.depth -= 1
            return

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.OperationalError as e:
            if _is_lock_error(e):
                raise LockTimeoutError(
                    f"Timed out after {self.lock_timeout}s waiting for the database write lock",
                    timeout=self.lock_timeout,
                ) from e
            raise TransactionError(f"Failed to begin transaction: {e}", cause=e) from e
        # Subtree deletes remove parents before children
        conn.execute("PRAGMA defer_foreign_keys = ON")
        self._local.depth = 1
        try:
            yield self
        except BaseException:
            self._local.depth = 0
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.error("Rollback failed: %s", e)
            raise
        self._local.depth = 0
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error:
                logger.error("Rollback after failed commit also failed")
            raise TransactionError(f"Failed to commit transaction: {e}", cause=e) from e

    def lock_node(
        self, node_id: NodeId, timeout: Optional[float] = None
    ) -> Optional[IntervalNode]:
        if not self.in_transaction():
            raise TransactionError("lock_node requires an active transaction")
        # BEGIN IMMEDIATE already holds the database write lock
        return self.get(node_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, node: IntervalNode) -> IntervalNode:
        payload = json.dumps(node.payload, default=str)
        if node.id is None:
            cursor = self._execute(
                "insert",
                f"INSERT INTO {NODES_TABLE} (lft, rgt, parent_id, payload) VALUES (?, ?, ?, ?)",
                (node.left, node.right, node.parent_id, payload),
            )
        else:
            cursor = self._execute(
                "insert",
                f"INSERT INTO {NODES_TABLE} (id, lft, rgt, parent_id, payload) VALUES (?, ?, ?, ?, ?)",
                (node.id, node.left, node.right, node.parent_id, payload),
            )
        stored = node.copy()
        stored.id = node.id if node.id is not None else cursor.lastrowid
        return stored

    def save_all(self, nodes: Iterable[IntervalNode]) -> List[IntervalNode]:
        nodes = [node.copy() for node in nodes]
        if not nodes:
            return []
        cursor = self._executemany(
            "save_all",
            f"UPDATE {NODES_TABLE} SET lft = ?, rgt = ?, parent_id = ? WHERE id = ?",
            [(n.left, n.right, n.parent_id, n.id) for n in nodes],
        )
        if cursor.rowcount != len(nodes):
            raise StoreError(
                f"save_all updated {cursor.rowcount} of {len(nodes)} nodes",
                operation="save_all",
            )
        return nodes

    def delete_all(self, nodes: Iterable[IntervalNode]) -> int:
        rows = [(node.id,) for node in nodes]
        if not rows:
            return 0
        cursor = self._executemany(
            "delete_all", f"DELETE FROM {NODES_TABLE} WHERE id = ?", rows
        )
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, node_id: NodeId) -> Optional[IntervalNode]:
        return self._fetchone("get", "id = ?", (node_id,))

    def count(self) -> int:
        row = self._execute("count", f"SELECT COUNT(*) AS n FROM {NODES_TABLE}").fetchone()
        return row["n"]

    def find_all_ordered_by_left(self) -> List[IntervalNode]:
        return self._fetchall("find_all_ordered_by_left")

    def find_root_nodes(self) -> List[IntervalNode]:
        return self._fetchall("find_root_nodes", "parent_id IS NULL")

    def find_leaf_nodes(self) -> List[IntervalNode]:
        return self._fetchall("find_leaf_nodes", "lft + 1 = rgt")

    def find_prev_sibling(
        self, parent_id: Optional[NodeId], left: int
    ) -> Optional[IntervalNode]:
        return self._fetchone(
            "find_prev_sibling",
            f"rgt < ? AND {_SAME_PARENT}",
            (left, parent_id, parent_id),
            order="lft DESC",
        )

    def find_next_sibling(
        self, parent_id: Optional[NodeId], right: int
    ) -> Optional[IntervalNode]:
        return self._fetchone(
            "find_next_sibling",
            f"lft > ? AND {_SAME_PARENT}",
            (right, parent_id, parent_id),
        )

    def find_children(self, parent_id: Optional[NodeId]) -> List[IntervalNode]:
        return self._fetchall("find_children", _SAME_PARENT, (parent_id, parent_id))

    def find_siblings(
        self, parent_id: Optional[NodeId], self_id: NodeId
    ) -> List[IntervalNode]:
        return self._fetchall(
            "find_siblings",
            f"{_SAME_PARENT} AND id <> ?",
            (parent_id, parent_id, self_id),
        )

    def find_ancestors(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall(
            "find_ancestors", "lft < ? AND rgt > ?", (left, right), order="lft DESC"
        )

    def find_descendants(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall("find_descendants", "lft > ? AND rgt < ?", (left, right))

    def find_subtree(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall("find_subtree", "lft >= ? AND rgt <= ?", (left, right))

    def find_containing(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall("find_containing", "lft <= ? AND rgt >= ?", (left, right))

    def find_exact(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall("find_exact", "lft = ? AND rgt = ?", (left, right))

    def find_nodes_to_shift(self, right: int) -> List[IntervalNode]:
        return self._fetchall("find_nodes_to_shift", "rgt > ?", (right,))

    def find_by_left_between(self, left: int, right: int) -> List[IntervalNode]:
        return self._fetchall(
            "find_by_left_between", "lft BETWEEN ? AND ?", (left, right)
        )
