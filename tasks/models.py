"""
tasks/models.py -- Domain dataclass for task documents.

A task is a free-form JSON object plus the identifier the store assigns on
insert. The document's shape is checked at the API boundary (api/models.py
TaskCreate); the store keeps whatever it is given, key for key.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# The only status value this server ever writes.
STATUS_COMPLETE = "complete"

# Key under which the identifier appears in serialized documents.
ID_KEY = "_id"


@dataclass
class Task:
    """A stored task document.

    document never contains ID_KEY; to_document() merges it back in for
    responses. id is None before the record is written to the database.
    """

    document: dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert

    def to_document(self) -> dict[str, Any]:
        return {ID_KEY: self.id, **self.document}
