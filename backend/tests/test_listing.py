import uuid

from fastapi.testclient import TestClient

from conftest import OTHER_WALLET, WALLET, upload


def test_list_is_scoped_to_wallet(client: TestClient):
    upload(client, "mine.txt", b"1")
    upload(client, "theirs.txt", b"2", wallet=OTHER_WALLET)

    mine = client.get("/files", params={"walletAddress": WALLET}).json()
    theirs = client.get("/files", params={"walletAddress": OTHER_WALLET}).json()

    assert [f["filename"] for f in mine] == ["mine.txt"]
    assert [f["filename"] for f in theirs] == ["theirs.txt"]


def test_list_requires_wallet(client: TestClient):
    assert client.get("/files").status_code == 400


def test_get_one(client: TestClient):
    created = upload(client, "a.txt", b"abc").json()["dbData"]

    response = client.get(f"/files/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_id_is_404(client: TestClient):
    assert client.get(f"/files/{uuid.uuid4()}").status_code == 404
    assert client.get("/files/not-a-valid-id").status_code == 404


def test_total_size_sums_files_and_skips_folders(client: TestClient):
    upload(client, "a.bin", b"x" * 10)
    upload(client, "b.bin", b"y" * 32)
    upload(client, "c.bin", b"z" * 100, wallet=OTHER_WALLET)
    client.post("/create-folder", data={"folderName": "docs", "walletAddress": WALLET})

    response = client.get("/totalSize", params={"walletAddress": WALLET})

    assert response.status_code == 200
    assert response.json() == {"totalSize": 42}


def test_total_size_is_zero_for_unknown_wallet(client: TestClient):
    response = client.get("/totalSize", params={"walletAddress": "0xnobody"})

    assert response.json() == {"totalSize": 0}


def test_health_reports_database(client: TestClient):
    assert client.get("/health").json() == {"status": "ok", "database": "connected"}


def test_create_app_configures_logging(monkeypatch):
    from storage_gateway import main

    levels = []
    monkeypatch.setattr(main, "setup_logging", levels.append)

    main.create_app()

    assert levels == [main.settings.LOG_LEVEL]
