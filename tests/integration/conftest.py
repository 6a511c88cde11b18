import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from docmanager.classification.keyword_classifier import KeywordClassifier
from docmanager.config.settings import Settings
from docmanager.database.connection import close_pool, get_connection, init_pool
from docmanager.database.models import UserRecord
from docmanager.database.schema import apply_schema
from docmanager.database.unit_of_work import UnitOfWork
from docmanager.services.builder import Services, build_services
from docmanager.storage.local_blob_store import LocalBlobStore

_TABLES = "document_metadata, documents, document_types, users"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docmanager_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            apply_schema(conn)
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        conn.execute(f"TRUNCATE {_TABLES} CASCADE")
        yield conn


@pytest.fixture
def uow(db_conn: psycopg.Connection[Any]) -> Generator[UnitOfWork, None, None]:
    with UnitOfWork(db_conn) as uow:
        yield uow


@pytest.fixture
def seed_user(uow: UnitOfWork) -> UserRecord:
    return uow.users.add(UserRecord(username="alice", email="alice@example.com"))


@pytest.fixture
def services(uow: UnitOfWork, test_settings: Settings, tmp_path: Path) -> Services:
    return build_services(
        uow,
        test_settings,
        blob_store=LocalBlobStore(tmp_path / "storage"),
        classifier=KeywordClassifier(),
    )
