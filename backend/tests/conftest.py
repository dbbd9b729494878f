from typing import Generator

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from storage_gateway.database import get_session_factory
from storage_gateway.models import Base
from storage_gateway.services.object_store import ObjectStoreService, get_object_store

BUCKET = "web3storage"
WALLET = "0xA11CE0000000000000000000000000000000a11ce"
OTHER_WALLET = "0xB0B0000000000000000000000000000000000b0b"


@pytest.fixture
def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """SQLite file database with the schema already created.

    Each session gets its own connection so concurrent bulk-delete
    pipelines do not share a transaction.
    """
    db_path = tmp_path / "gateway.db"
    sync_engine = create_engine(f"sqlite+pysqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store() -> Generator[ObjectStoreService, None, None]:
    """Object store backed by moto with the gateway bucket created."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=BUCKET)
        yield ObjectStoreService(
            bucket=BUCKET,
            access_key="testing",
            secret_key="testing",
            region="us-east-1",
        )


@pytest.fixture
def s3(store: ObjectStoreService):
    """Raw boto3 client for asserting on bucket contents."""
    return store.client


@pytest.fixture
def client(session_factory, store) -> Generator[TestClient, None, None]:
    """App wired to the test database and bucket.

    Used without a context manager so the startup hook (which talks to
    the configured Postgres) never runs.
    """
    from storage_gateway.main import create_app

    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_object_store] = lambda: store

    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client: TestClient, filename: str, content: bytes, wallet: str = WALLET, content_type: str = "text/plain"):
    return client.post(
        "/upload",
        files={"file": (filename, content, content_type)},
        data={"walletAddress": wallet},
    )


def object_keys(s3) -> list[str]:
    response = s3.list_objects_v2(Bucket=BUCKET)
    return sorted(obj["Key"] for obj in response.get("Contents", []))
