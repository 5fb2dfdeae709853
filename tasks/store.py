"""
tasks/store.py -- SQLAlchemy-backed document store for tasks.

Uses SQLAlchemy Core (not ORM) so the Task dataclass in tasks/models.py
remains the authoritative domain representation. Each task row holds the
client's JSON object serialized as text; the integer primary key is the
task's identifier. Swapping SQLite for PostgreSQL is a connection string
change, not a rewrite.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly. Write methods return
InsertResult / DeleteResult / UpdateResult from core/models.py.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///:memory:")
    result = store.insert_one({"title": "Write report"})
    task = store.find_by_id(result.inserted_id)
    store.update_status(task.id, STATUS_COMPLETE)
    store.delete_by_id(task.id)
    store.close()
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine

from core.errors import StorageFault
from core.models import DeleteResult, InsertResult, UpdateResult
from tasks.models import ID_KEY, Task

logger = logging.getLogger("taskserver.tasks")

_DEFAULT_DB_URL = "sqlite:///./taskserver.db"

# Largest value a signed 64-bit INTEGER primary key can hold.
_MAX_ID = 2**63 - 1

# Conditional rewrites that miss because the row changed underneath are
# retried this many times before giving up.
_UPDATE_ATTEMPTS = 3

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("document", Text, nullable=False),  # JSON object serialized as text
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def parse_task_id(raw: str) -> Optional[int]:
    """Parse a path-supplied task identifier.

    Returns None for anything that is not a positive decimal integer, so
    callers can treat malformed and unknown identifiers alike.
    """
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()):
        return None
    task_id = int(raw)
    return task_id if 0 < task_id <= _MAX_ID else None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync route handlers in a thread pool, so the same
            # connection may be used from more than one thread.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_one(self, document: dict[str, Any]) -> InsertResult:
        """Store a document and return the insert result with its new ID.

        A client-supplied ID_KEY is dropped; the store always assigns the
        identifier itself.
        """
        body = {k: v for k, v in document.items() if k != ID_KEY}
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    document=json.dumps(body),
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            task_id = result.inserted_primary_key[0]
        logger.debug("Inserted task %d", task_id)
        return InsertResult(inserted_id=task_id)

    def delete_by_id(self, task_id: int) -> DeleteResult:
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return DeleteResult(deleted_count=result.rowcount)

    def update_status(self, task_id: int, status: str) -> UpdateResult:
        """Set the document's "status" key, reporting matched and modified counts.

        Writing the value a document already holds is a match without a
        modification, so repeating the same update is a no-op that reports
        modified_count == 0.

        The rewrite is conditional on the document text that was read, so an
        edit landing between the read and the write is never overwritten:
        the update misses and is retried against the fresh document.
        """
        for _ in range(_UPDATE_ATTEMPTS):
            with self.engine.begin() as conn:
                row = conn.execute(select(_tasks.c.document).where(_tasks.c.id == task_id)).first()
                if row is None:
                    return UpdateResult(matched_count=0, modified_count=0)
                document = json.loads(row.document)
                if document.get("status") == status:
                    return UpdateResult(matched_count=1, modified_count=0)
                document["status"] = status
                result = conn.execute(
                    _tasks.update()
                    .where(_tasks.c.id == task_id, _tasks.c.document == row.document)
                    .values(document=json.dumps(document))
                )
            if result.rowcount:
                return UpdateResult(matched_count=1, modified_count=result.rowcount)
            logger.debug("Task %d changed during status update, retrying", task_id)
        raise StorageFault(f"Task {task_id} kept changing during status update")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_all(self) -> list[Task]:
        """Return every task in insertion order. Unfiltered and unpaginated."""
        with self.engine.connect() as conn:
            rows = conn.execute(_tasks.select().order_by(_tasks.c.id)).fetchall()
        return [_row_to_task(r) for r in rows]

    def find_by_id(self, task_id: int) -> Optional[Task]:
        """Fetch a single task by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_tasks)).scalar() or 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        document=json.loads(row.document),
        created_at=row.created_at,
    )
