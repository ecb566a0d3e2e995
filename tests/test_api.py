"""
HTTP gateway tests using FastAPI's TestClient against a SQLite world state.
"""

import asyncio
import json
import sqlite3

import pytest
from fastapi.testclient import TestClient

from asset_registry_api.app.core.config import settings
from asset_registry_api.app.main import create_app
from conftest import ADMIN_ID, ALICE_ID, AUDITOR_ID, BOB_ID

ADMIN = {"X-Client-Id": ADMIN_ID, "X-Client-Role": "admin"}
AUDITOR = {"X-Client-Id": AUDITOR_ID, "X-Client-Role": "auditor"}
ALICE = {"X-Client-Id": ALICE_ID, "X-Client-Role": "user"}
BOB = {"X-Client-Id": BOB_ID, "X-Client-Role": "user"}


@pytest.fixture
def client(sqlite_settings):
    with TestClient(create_app()) as test_client:
        yield test_client


def create(client, asset_id="a1", owner=ALICE_ID, value=100, headers=ADMIN):
    return client.post("/api/v1/assets/", json={"id": asset_id, "owner": owner, "value": value}, headers=headers)


class TestAssetEndpoints:
    def test_create_and_read(self, client):
        response = create(client)
        assert response.status_code == 201
        assert response.json() == {"message": "Asset created successfully", "assetId": "a1"}

        response = client.get("/api/v1/assets/a1", headers=AUDITOR)
        assert response.status_code == 200
        assert response.json() == {"ID": "a1", "owner": ALICE_ID, "value": 100, "createdBy": ADMIN_ID}

    def test_created_by_cannot_be_supplied(self, client):
        response = client.post(
            "/api/v1/assets/",
            json={"id": "a1", "owner": ALICE_ID, "value": 1, "createdBy": "someone-else"},
            headers=ADMIN,
        )
        assert response.status_code == 422
        assert client.get("/api/v1/assets/a1", headers=AUDITOR).status_code == 404

    def test_create_requires_admin(self, client):
        assert create(client, headers=ALICE).status_code == 403
        assert client.get("/api/v1/assets/a1", headers=AUDITOR).status_code == 404

    def test_duplicate_create_conflicts(self, client):
        assert create(client).status_code == 201

        response = create(client, owner=BOB_ID)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_missing_client_id_is_unauthenticated(self, client):
        response = create(client, headers={"X-Client-Role": "admin"})
        assert response.status_code == 401

    def test_owner_read_and_foreign_read(self, client):
        create(client)

        assert client.get("/api/v1/assets/a1", headers=ALICE).status_code == 200
        assert client.get("/api/v1/assets/a1", headers=BOB).status_code == 403

    def test_read_without_role(self, client):
        create(client)

        response = client.get("/api/v1/assets/a1", headers={"X-Client-Id": ALICE_ID})

        assert response.status_code == 403
        assert response.json()["detail"] == "role attribute not found"

    def test_update_then_delete(self, client):
        create(client)

        response = client.put("/api/v1/assets/a1", json={"value": 250}, headers=ADMIN)
        assert response.status_code == 200
        body = client.get("/api/v1/assets/a1", headers=AUDITOR).json()
        assert body["value"] == 250
        assert body["owner"] == ALICE_ID

        response = client.delete("/api/v1/assets/a1", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["assetId"] == "a1"
        assert client.get("/api/v1/assets/a1", headers=AUDITOR).status_code == 404

    def test_update_and_delete_missing(self, client):
        assert client.put("/api/v1/assets/nope", json={"value": 1}, headers=ADMIN).status_code == 404
        assert client.delete("/api/v1/assets/nope", headers=ADMIN).status_code == 404

    def test_update_requires_admin(self, client):
        create(client)

        assert client.put("/api/v1/assets/a1", json={"value": 1}, headers=ALICE).status_code == 403
        assert client.get("/api/v1/assets/a1", headers=AUDITOR).json()["value"] == 100


class TestCommitBeforeResponse:
    """Writes are durable before the response status line goes out."""

    @staticmethod
    def stored_key(asset_id):
        conn = sqlite3.connect(settings.database_url)
        try:
            row = conn.execute("SELECT key FROM world_state WHERE key = ?", (asset_id,)).fetchone()
        finally:
            conn.close()
        return row

    def send_request(self, method, path, body=b"", headers=ADMIN):
        app = create_app()
        raw_headers = [(b"content-type", b"application/json"), (b"content-length", str(len(body)).encode())]
        raw_headers += [(name.lower().encode(), value.encode()) for name, value in headers.items()]
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": b"",
            "root_path": "",
            "headers": raw_headers,
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }
        seen = {}

        async def run():
            finished = asyncio.Event()
            request_sent = False

            async def receive():
                nonlocal request_sent
                if not request_sent:
                    request_sent = True
                    return {"type": "http.request", "body": body, "more_body": False}
                await finished.wait()
                return {"type": "http.disconnect"}

            async def send(message):
                if message["type"] == "http.response.start":
                    seen["status"] = message["status"]
                    seen["row"] = self.stored_key("a1")
                elif message["type"] == "http.response.body" and not message.get("more_body", False):
                    finished.set()

            await app(scope, receive, send)

        asyncio.run(run())
        return seen

    def test_create_is_committed_before_status(self, sqlite_settings):
        body = json.dumps({"id": "a1", "owner": ALICE_ID, "value": 100}).encode()

        seen = self.send_request("POST", "/api/v1/assets/", body)

        assert seen["status"] == 201
        assert seen["row"] is not None

    def test_delete_is_committed_before_status(self, client):
        assert create(client).status_code == 201

        seen = self.send_request("DELETE", "/api/v1/assets/a1")

        assert seen["status"] == 200
        assert seen["row"] is None


class TestListEndpoints:
    def test_list_all_for_auditor(self, client):
        create(client, "b", ALICE_ID)
        create(client, "a", BOB_ID)

        response = client.get("/api/v1/assets/", params={"all": "true"}, headers=AUDITOR)

        assert response.status_code == 200
        assert [asset["ID"] for asset in response.json()] == ["a", "b"]

    def test_list_all_refused_for_admin(self, client):
        response = client.get("/api/v1/assets/", params={"all": "true"}, headers=ADMIN)
        assert response.status_code == 403

    def test_list_own(self, client):
        create(client, "a1", ALICE_ID)
        create(client, "a2", BOB_ID)

        response = client.get("/api/v1/assets/", headers=BOB)

        assert response.status_code == 200
        assert [asset["ID"] for asset in response.json()] == ["a2"]

    def test_list_own_without_role(self, client):
        create(client, "a1", ALICE_ID)

        response = client.get("/api/v1/assets/", headers={"X-Client-Id": ALICE_ID})

        assert response.status_code == 403
        assert response.json()["detail"] == "role attribute not found"


class TestInfoEndpoints:
    def test_health(self, client):
        response = client.get("/api/v1/info/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_user_info(self, client):
        response = client.get("/api/v1/info/user-info", headers=AUDITOR)

        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "auditor"
        assert body["permissions"]["viewAllAssets"] is True
        assert body["permissions"]["createAsset"] is False
