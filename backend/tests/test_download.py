import uuid

from fastapi.testclient import TestClient

from conftest import BUCKET, WALLET, upload


def test_upload_then_download_round_trip(client: TestClient):
    content = bytes(range(256)) * 4
    created = upload(client, "blob.bin", content, content_type="application/octet-stream").json()["dbData"]

    response = client.get(f"/download/{created['id']}")

    assert response.status_code == 200
    assert response.content == content
    assert response.headers["content-disposition"] == 'attachment; filename="blob.bin"'


def test_download_non_ascii_filename(client: TestClient):
    created = upload(client, "résumé.txt", b"cv").json()["dbData"]

    response = client.get(f"/download/{created['id']}")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == "attachment; filename*=utf-8''r%C3%A9sum%C3%A9.txt"


def test_download_unknown_id_is_404(client: TestClient):
    assert client.get(f"/download/{uuid.uuid4()}").status_code == 404


def test_download_folder_is_rejected(client: TestClient):
    folder = client.post(
        "/create-folder",
        data={"folderName": "pics", "walletAddress": WALLET},
    ).json()["dbData"]

    assert client.get(f"/download/{folder['id']}").status_code == 400


def test_download_missing_object_is_404(client: TestClient, s3):
    created = upload(client, "vanished.txt", b"poof").json()["dbData"]
    s3.delete_object(Bucket=BUCKET, Key=created["path"])

    assert client.get(f"/download/{created['id']}").status_code == 404


def test_download_uses_stored_content_type(client: TestClient):
    created = upload(client, "scan.bin", b"%PDF-1.7", content_type="application/pdf").json()["dbData"]

    response = client.get(f"/download/{created['id']}")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"


def test_download_falls_back_to_guessed_type(client: TestClient, store, monkeypatch):
    created = upload(client, "notes.txt", b"hi").json()["dbData"]

    async def untyped_get(key):
        return b"hi", None

    monkeypatch.setattr(store, "get", untyped_get)

    response = client.get(f"/download/{created['id']}")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
