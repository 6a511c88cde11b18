"""Process-local store mirroring the PostgreSQL schema.

Rows are kept as private copies; repositories hand out copies too, so a
caller has to write changes back explicitly, exactly as with SQL.
"""

import copy
import uuid
from dataclasses import dataclass, field

from docmanager.database.models import (
    DocumentMetadataRecord,
    DocumentRecord,
    DocumentTypeRecord,
    UserRecord,
)


@dataclass
class StoreTables:
    documents: dict[uuid.UUID, DocumentRecord] = field(default_factory=dict)
    document_types: dict[uuid.UUID, DocumentTypeRecord] = field(default_factory=dict)
    document_metadata: dict[uuid.UUID, DocumentMetadataRecord] = field(default_factory=dict)
    users: dict[uuid.UUID, UserRecord] = field(default_factory=dict)


class InMemoryStore:
    """Tables held in dictionaries keyed by row ID.

    ``supports_transactions=False`` models a backend without transactions:
    units of work over it hand out no-op transactions and every write is
    immediately permanent.
    """

    def __init__(self, supports_transactions: bool = True) -> None:
        self.tables = StoreTables()
        self.supports_transactions = supports_transactions
        self.in_transaction = False

    def snapshot(self) -> StoreTables:
        return copy.deepcopy(self.tables)

    def restore(self, snapshot: StoreTables) -> None:
        self.tables = snapshot
