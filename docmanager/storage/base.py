import uuid
from abc import ABC, abstractmethod

from docmanager.storage.models import StoredVersion, VersionContent, VersionInfo


class BaseBlobStore(ABC):
    """Contract for file byte storage keyed by an opaque path.

    Implementations must be safe for concurrent independent calls.
    """

    @abstractmethod
    def store(self, content: bytes, file_name: str, file_type: str) -> str:
        """Persist bytes and return the path they can be retrieved by.

        Raises:
            BlobStoreError: if the bytes cannot be written.
        """

    @abstractmethod
    def retrieve(self, path: str) -> bytes:
        """Read back bytes stored under ``path``.

        Raises:
            BlobNotFoundError: if nothing is stored under ``path``.
            BlobStoreError: if the bytes cannot be read.
        """

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove stored bytes; False when nothing was stored under ``path``."""

    @abstractmethod
    def save_version(
        self, document_id: uuid.UUID, content: bytes, file_name: str, user_id: uuid.UUID
    ) -> StoredVersion:
        """Store a new numbered version of a document's file."""

    @abstractmethod
    def get_version_history(self, document_id: uuid.UUID) -> list[VersionInfo]:
        """All versions of a document, oldest first; empty when there are none."""

    @abstractmethod
    def get_version(self, document_id: uuid.UUID, version_number: int = 0) -> VersionContent:
        """Read one version; ``0`` selects the latest.

        Raises:
            BlobNotFoundError: if the version does not exist.
        """
