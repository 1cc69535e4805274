import asyncio
import time
from pathlib import Path

import httpx
import pytest

from eventops.main import app
from eventops.storage import RemoteBlobStorage, get_storage


def upload(client, dept_id, name="Agenda", filename="agenda.txt", content=b"day one", content_type="text/plain"):
    return client.post(
        f"/departments/{dept_id}/documents",
        data={"name": name},
        files={"file": (filename, content, content_type)},
    )


def test_upload_and_fetch(client, make_department, storage):
    dept = make_department()

    r = upload(client, dept["id"])
    assert r.status_code == 201, r.text
    doc = r.json()
    assert doc["name"] == "Agenda"
    assert doc["size"] == len(b"day one")
    assert doc["contentType"] == "text/plain"
    assert doc["departmentId"] == dept["id"]
    assert Path(doc["fileName"]).is_relative_to(storage.root)

    r = client.get(f"/departments/{dept['id']}/documents/{doc['id']}")
    assert r.status_code == 200
    assert r.content == b"day one"
    assert r.headers["content-type"].startswith("text/plain")
    assert "Agenda" in r.headers["content-disposition"]


def test_documents_listed_most_recent_first(client, make_department):
    dept = make_department()
    first = upload(client, dept["id"], name="First").json()
    second = upload(client, dept["id"], name="Second").json()

    ids = [d["id"] for d in client.get(f"/departments/{dept['id']}/documents").json()]
    assert ids == [second["id"], first["id"]]

    listed = client.get("/departments").json()[0]["documents"]
    assert [d["id"] for d in listed] == [second["id"], first["id"]]


def test_upload_to_missing_department_writes_nothing(client, storage):
    r = upload(client, 999)
    assert r.status_code == 404
    assert not storage.root.exists() or not any(storage.root.rglob("*"))


def test_oversize_upload_rejected_before_storage(client, make_department, storage):
    dept = make_department()
    r = upload(client, dept["id"], content=b"x" * (5 * 1024 * 1024 + 1), content_type="application/pdf")
    assert r.status_code == 400
    assert r.json()["detail"] == "Max file size is 5MB"
    assert not storage.root.exists() or not any(storage.root.rglob("*"))
    assert client.get(f"/departments/{dept['id']}/documents").json() == []


@pytest.mark.parametrize(
    "content_type",
    ["application/pdf", "application/msword",
     "application/vnd.openxmlformats-officedocument.wordprocessingml.document"],
)
def test_accepted_types(client, make_department, content_type):
    dept = make_department()
    assert upload(client, dept["id"], filename="f.bin", content_type=content_type).status_code == 201


def test_unsupported_type_rejected(client, make_department):
    dept = make_department()
    r = upload(client, dept["id"], filename="photo.png", content=b"\x89PNG", content_type="image/png")
    assert r.status_code == 400


def test_name_is_required(client, make_department):
    dept = make_department()
    r = upload(client, dept["id"], name="  ")
    assert r.status_code == 400
    assert r.json()["detail"] == "Name and file are required"


def test_document_from_other_department_is_404(client, make_department):
    it = make_department("IT", "Information Technology")
    catering = make_department("Catering", "Food and Beverage")
    doc = upload(client, it["id"]).json()

    assert client.get(f"/departments/{catering['id']}/documents/{doc['id']}").status_code == 404
    assert client.get(f"/departments/{it['id']}/documents/999").status_code == 404


def test_deleting_department_cascades_documents(client, make_department):
    dept = make_department()
    doc = upload(client, dept["id"]).json()
    stored = Path(doc["fileName"])
    assert stored.exists()

    assert client.delete(f"/departments/{dept['id']}").status_code == 204

    assert client.get(f"/departments/{dept['id']}/documents").json() == []
    assert client.get(f"/departments/{dept['id']}/documents/{doc['id']}").status_code == 404
    assert not stored.exists()


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_remote_backend_redirects_to_blob_url(client, make_department, monkeypatch):
    calls = []

    def fake_put(url, data=None, headers=None, timeout=None):
        calls.append((url, data, headers))
        return FakeResponse({"url": "https://blobs.example.com/it/agenda.txt"})

    monkeypatch.setattr("eventops.storage.requests.put", fake_put)
    app.dependency_overrides[get_storage] = lambda: RemoteBlobStorage("https://blob-api.example.com", "tok")

    dept = make_department()
    doc = upload(client, dept["id"]).json()
    assert doc["fileName"] == "https://blobs.example.com/it/agenda.txt"

    url, data, headers = calls[0]
    assert url == f"https://blob-api.example.com/{dept['id']}/agenda.txt"
    assert data == b"day one"
    assert headers["Authorization"] == "Bearer tok"

    r = client.get(f"/departments/{dept['id']}/documents/{doc['id']}", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "https://blobs.example.com/it/agenda.txt"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.mark.anyio
async def test_slow_blob_upload_does_not_block_other_requests(client, make_department, monkeypatch):
    def slow_put(url, data=None, headers=None, timeout=None):
        time.sleep(1.0)
        return FakeResponse({"url": "https://blobs.example.com/it/agenda.txt"})

    monkeypatch.setattr("eventops.storage.requests.put", slow_put)
    app.dependency_overrides[get_storage] = lambda: RemoteBlobStorage("https://blob-api.example.com")
    dept = make_department()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        pending = asyncio.create_task(
            ac.post(
                f"/departments/{dept['id']}/documents",
                data={"name": "Agenda"},
                files={"file": ("agenda.txt", b"day one", "text/plain")},
            )
        )
        await asyncio.sleep(0.1)

        started = time.monotonic()
        health = await ac.get("/health")
        elapsed = time.monotonic() - started

        uploaded = await pending

    assert health.status_code == 200
    assert elapsed < 0.5
    assert uploaded.status_code == 201
    assert uploaded.json()["fileName"] == "https://blobs.example.com/it/agenda.txt"
