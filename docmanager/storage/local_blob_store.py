import hashlib
import json
import mimetypes
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from docmanager.database.models import utcnow
from docmanager.logging.logger import Log
from docmanager.storage.base import BaseBlobStore
from docmanager.storage.exceptions import BlobNotFoundError, BlobStoreError
from docmanager.storage.models import StoredVersion, VersionContent, VersionInfo

_DEFAULT_CONTENT_TYPE = "application/octet-stream"
_INDEX_FILE = "versions.json"


def content_type_for(file_name: str) -> str:
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or _DEFAULT_CONTENT_TYPE


class LocalBlobStore(BaseBlobStore):
    """Stores files under a filesystem root.

    Layout::

        {root}/files/{uuid}_{file_name}
        {root}/versions/{document_id}/v00001.pdf
        {root}/versions/{document_id}/versions.json
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._files_dir = root / "files"
        self._versions_dir = root / "versions"
        self._index_lock = threading.Lock()

    def store(self, content: bytes, file_name: str, file_type: str) -> str:
        path = self._files_dir / f"{uuid.uuid4()}_{Path(file_name).name}"
        self._write(path, content)
        Log.info(f"Stored {len(content)} bytes ({file_type or 'unknown type'}) at {path}")
        return str(path)

    def retrieve(self, path: str) -> bytes:
        resolved = self._resolve(path)
        if not resolved.is_file():
            raise BlobNotFoundError(f"File not found: {path}")
        try:
            return resolved.read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"Failed to read {path}: {exc}") from exc

    def delete(self, path: str) -> bool:
        resolved = self._resolve(path)
        if not resolved.is_file():
            Log.warning(f"File not found for deletion: {path}")
            return False
        try:
            resolved.unlink()
        except OSError as exc:
            raise BlobStoreError(f"Failed to delete {path}: {exc}") from exc
        Log.info(f"Deleted {path}")
        return True

    def save_version(
        self, document_id: uuid.UUID, content: bytes, file_name: str, user_id: uuid.UUID
    ) -> StoredVersion:
        safe_name = Path(file_name).name
        document_dir = self._versions_dir / str(document_id)
        with self._index_lock:
            entries = self._read_index(document_id)
            version_number = max((entry.version_number for entry in entries), default=0) + 1
            path = document_dir / f"v{version_number:05d}{Path(safe_name).suffix}"
            self._write(path, content)
            entries.append(
                VersionInfo(
                    document_id=document_id,
                    version_number=version_number,
                    path=str(path),
                    file_name=safe_name,
                    file_size_bytes=len(content),
                    content_type=content_type_for(safe_name),
                    content_hash=hashlib.sha256(content).hexdigest(),
                    created_by_id=user_id,
                    created_date=utcnow(),
                )
            )
            self._write_index(document_id, entries)

        Log.info(f"Saved version {version_number} of document {document_id} at {path}")
        return StoredVersion(version_number=version_number, path=str(path))

    def get_version_history(self, document_id: uuid.UUID) -> list[VersionInfo]:
        return sorted(self._read_index(document_id), key=lambda entry: entry.version_number)

    def get_version(self, document_id: uuid.UUID, version_number: int = 0) -> VersionContent:
        history = self.get_version_history(document_id)
        if version_number <= 0:
            entry = history[-1] if history else None
        else:
            entry = next((v for v in history if v.version_number == version_number), None)

        if entry is None:
            raise BlobNotFoundError(
                f"Version {version_number or 'latest'} not found for document {document_id}"
            )

        return VersionContent(
            version_number=entry.version_number,
            file_name=entry.file_name,
            content=self.retrieve(entry.path),
            content_type=entry.content_type,
        )

    def _resolve(self, path: str) -> Path:
        resolved = Path(path).resolve()
        if not resolved.is_relative_to(self._root.resolve()):
            raise BlobStoreError(f"Path {path} is outside the storage root")
        return resolved

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write {path}: {exc}") from exc

    def _index_path(self, document_id: uuid.UUID) -> Path:
        return self._versions_dir / str(document_id) / _INDEX_FILE

    def _read_index(self, document_id: uuid.UUID) -> list[VersionInfo]:
        index_path = self._index_path(document_id)
        if not index_path.is_file():
            return []
        try:
            raw = json.loads(index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise BlobStoreError(f"Failed to read version index {index_path}: {exc}") from exc
        return [_entry_from_dict(item) for item in raw]

    def _write_index(self, document_id: uuid.UUID, entries: list[VersionInfo]) -> None:
        payload = json.dumps([_entry_to_dict(entry) for entry in entries], indent=2)
        self._write(self._index_path(document_id), payload.encode("utf-8"))


def _entry_to_dict(entry: VersionInfo) -> dict[str, Any]:
    return {
        "document_id": str(entry.document_id),
        "version_number": entry.version_number,
        "path": entry.path,
        "file_name": entry.file_name,
        "file_size_bytes": entry.file_size_bytes,
        "content_type": entry.content_type,
        "content_hash": entry.content_hash,
        "created_by_id": str(entry.created_by_id),
        "created_date": entry.created_date.isoformat(),
    }


def _entry_from_dict(raw: dict[str, Any]) -> VersionInfo:
    try:
        return VersionInfo(
            document_id=uuid.UUID(raw["document_id"]),
            version_number=int(raw["version_number"]),
            path=raw["path"],
            file_name=raw["file_name"],
            file_size_bytes=int(raw["file_size_bytes"]),
            content_type=raw["content_type"],
            content_hash=raw["content_hash"],
            created_by_id=uuid.UUID(raw["created_by_id"]),
            created_date=datetime.fromisoformat(raw["created_date"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise BlobStoreError(f"Malformed version index entry: {exc}") from exc
