"""Preconditions shared by the services.

Each guard reads through the unit of work it is given, so it sees the
writes of the transaction it runs in.
"""

import uuid

from docmanager.database.models import DocumentTypeRecord, UserRecord
from docmanager.database.unit_of_work import BaseUnitOfWork
from docmanager.services.exceptions import ValidationError


def require_document_type(uow: BaseUnitOfWork, document_type_id: uuid.UUID) -> DocumentTypeRecord:
    document_type = uow.document_types.get_by_id(document_type_id)
    if document_type is None:
        raise ValidationError(
            "document_type_id", f"Document type {document_type_id} does not exist"
        )
    return document_type


def require_user(uow: BaseUnitOfWork, user_id: uuid.UUID) -> UserRecord:
    user = uow.users.get_by_id(user_id)
    if user is None:
        raise ValidationError("uploaded_by_id", f"User {user_id} does not exist")
    return user


def require_type_unreferenced(uow: BaseUnitOfWork, document_type_id: uuid.UUID) -> None:
    """Reject removal of a type that non-deleted documents still point at."""
    in_use = uow.documents.count_by_type(document_type_id)
    if in_use:
        raise ValidationError(
            "document_type_id",
            f"Document type {document_type_id} is in use by {in_use} document(s)",
        )


def require_unique_type_name(
    uow: BaseUnitOfWork, name: str, exclude_id: uuid.UUID | None = None
) -> None:
    """Names are compared exactly, case included."""
    existing = uow.document_types.get_by_name(name)
    if existing is not None and existing.id != exclude_id:
        raise ValidationError("name", f"A document type named '{name}' already exists")
