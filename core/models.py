"""
core/models.py -- Result dataclasses returned by the document stores.

Each write operation on a store returns one of these, shaped like the results
of a document-database driver: an acknowledgement flag plus the count or
identifier the write produced. Route handlers hand them to the API layer,
which serializes them with camelCase keys (insertedId, deletedCount, ...).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class InsertResult:
    inserted_id: int
    acknowledged: bool = True


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int
    acknowledged: bool = True


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of an update.

    matched_count   -- documents selected by the filter (0 or 1 here)
    modified_count  -- documents whose stored value actually changed

    A repeated idempotent update matches the document but modifies nothing.
    """

    matched_count: int
    modified_count: int
    acknowledged: bool = True
