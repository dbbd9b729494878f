from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from conftest import WALLET, object_keys, upload
from storage_gateway.exceptions import PersistError, StoreReadError
from storage_gateway.services.file_repository import FileRepository


async def database_down(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("database is down"))


def test_list_returns_500_when_database_fails(client: TestClient, monkeypatch):
    monkeypatch.setattr(FileRepository, "find_by_wallet", database_down)

    response = client.get("/files", params={"walletAddress": WALLET})

    assert response.status_code == 500
    assert response.json()["detail"] == "Error fetching files"


def test_total_size_returns_500_when_database_fails(client: TestClient, monkeypatch):
    monkeypatch.setattr(FileRepository, "sum_size_for_wallet", database_down)

    assert client.get("/totalSize", params={"walletAddress": WALLET}).status_code == 500


def test_get_one_returns_500_when_database_fails(client: TestClient, monkeypatch):
    created = upload(client, "a.txt", b"abc").json()["dbData"]
    monkeypatch.setattr(FileRepository, "find_by_id", database_down)

    assert client.get(f"/files/{created['id']}").status_code == 500
    assert client.get(f"/download/{created['id']}").status_code == 500


def test_download_returns_500_when_store_read_fails(client: TestClient, store, monkeypatch):
    created = upload(client, "a.txt", b"abc").json()["dbData"]

    async def failing_get(key):
        raise StoreReadError(key)

    monkeypatch.setattr(store, "get", failing_get)

    response = client.get(f"/download/{created['id']}")

    assert response.status_code == 500
    assert response.json()["detail"] == "Error downloading file"


def test_delete_returns_500_when_commit_fails_after_object_removed(client: TestClient, s3, monkeypatch):
    upload(client, "half.txt", b"data")

    async def failing_commit(self):
        raise PersistError("commit failed")

    monkeypatch.setattr(FileRepository, "commit", failing_commit)

    response = client.delete("/delete/half.txt")

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal Server Error"
    assert object_keys(s3) == []
