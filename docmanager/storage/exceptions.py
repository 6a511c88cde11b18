class BlobStoreError(Exception):
    """Base exception for all blob storage errors."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a stored file or file version does not exist."""
