from fastapi.testclient import TestClient

from umkm_registry import main

TOKO_BUNGA = {"nama_usaha": "Toko Bunga", "pemilik": "Budi", "jenis_usaha": "Retail", "status": "active"}
API = "/api/v1"


def register(client, username, rw, password="rahasia1"):
    response = client.post(f"{API}/auth/register", json={
        "username": username, "password": password, "name": username.title(), "rw": rw
    })
    assert response.status_code == 201
    return response


def login(client, username, password="rahasia1", rw=None):
    response = client.post(f"{API}/auth/login", json={"username": username, "password": password, "rw": rw})
    assert response.status_code == 200, response.json()
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_register_and_login(client):
    register(client, "siti", "04")

    response = client.post(f"{API}/auth/login", json={"username": "siti", "password": "rahasia1"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["username"] == "siti"
    assert "password_hash" not in data["user"]


def test_register_duplicate_is_conflict(client):
    register(client, "siti", "04")

    response = client.post(f"{API}/auth/register", json={
        "username": "siti", "password": "lain123", "name": "Siti", "rw": "01"
    })
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_login_failure_is_unauthorized(client, caplog):
    caplog.set_level("INFO", logger="umkm_registry")
    response = client.post(f"{API}/auth/login", json={"username": "siti", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"
    assert "Login rejected" in caplog.text


def test_me_requires_token(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401

    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer unknown"})
    assert response.status_code == 401


def test_me_and_logout(client):
    register(client, "siti", "04")
    headers = login(client, "siti")

    assert client.get(f"{API}/auth/me", headers=headers).json()["username"] == "siti"

    assert client.post(f"{API}/auth/logout", headers=headers).json()["success"] is True
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401


def test_change_password_flow(client):
    register(client, "siti", "04")
    headers = login(client, "siti")

    response = client.post(f"{API}/auth/change-password", headers=headers,
                           json={"old_password": "rahasia1", "new_password": "rahasia1"})
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.post(f"{API}/auth/change-password", headers=headers,
                           json={"old_password": "rahasia1", "new_password": "baru12345"})
    assert response.status_code == 200
    assert response.json()["success"] is True

    login(client, "siti", password="baru12345")


def test_change_password_without_session_is_unauthorized(client):
    response = client.post(f"{API}/auth/change-password",
                           json={"old_password": "a", "new_password": "bbbbbbb"})
    assert response.status_code == 401


def test_admin_default_login_then_override(client):
    headers = login(client, "admin", password="admin", rw="01")

    response = client.post(f"{API}/auth/change-password", headers=headers,
                           json={"old_password": "admin", "new_password": "kuat123"})
    assert response.status_code == 200

    response = client.post(f"{API}/auth/login", json={"username": "admin", "password": "admin", "rw": "01"})
    assert response.status_code == 401


def test_owner_crud(client):
    register(client, "siti", "04")
    headers = login(client, "siti")

    response = client.post(f"{API}/umkm", headers=headers, json=TOKO_BUNGA)
    assert response.status_code == 201
    created = response.json()

    listed = client.get(f"{API}/umkm", headers=headers).json()
    assert [item["id"] for item in listed] == [created["id"]]

    response = client.patch(f"{API}/umkm/{created['id']}", headers=headers, json={"status": "closed"})
    assert response.status_code == 200
    assert response.json()["status"] == "closed"

    assert client.get(f"{API}/umkm/{created['id']}", headers=headers).json()["status"] == "closed"

    response = client.delete(f"{API}/umkm/{created['id']}", headers=headers)
    assert response.json() == {"success": True, "id": created["id"]}
    assert client.get(f"{API}/umkm/{created['id']}", headers=headers).status_code == 404


def test_create_requires_mandatory_fields(client):
    register(client, "siti", "04")
    headers = login(client, "siti")

    response = client.post(f"{API}/umkm", headers=headers, json={"nama_usaha": "Toko"})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_other_users_cannot_touch_profile(client):
    register(client, "siti", "04")
    register(client, "budi", "04")
    siti = login(client, "siti")
    budi = login(client, "budi")

    created = client.post(f"{API}/umkm", headers=siti, json=TOKO_BUNGA).json()

    assert client.get(f"{API}/umkm/{created['id']}", headers=budi).status_code == 404
    assert client.get(f"{API}/umkm", headers=budi).json() == []

    response = client.patch(f"{API}/umkm/{created['id']}", headers=budi, json={"status": "x"})
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND_OR_FORBIDDEN"

    response = client.delete(f"{API}/umkm/{created['id']}", headers=budi)
    assert response.status_code == 404


def test_admin_sees_only_own_jurisdiction(client):
    register(client, "siti", "04")
    register(client, "andi", "01")
    siti = login(client, "siti")
    andi = login(client, "andi")

    in_04 = client.post(f"{API}/umkm", headers=siti, json=TOKO_BUNGA).json()
    in_01 = client.post(f"{API}/umkm", headers=andi, json={**TOKO_BUNGA, "nama_usaha": "Warung Andi"}).json()

    admin = login(client, "admin", password="admin", rw="04")

    listed = client.get(f"{API}/umkm", headers=admin).json()
    assert [item["id"] for item in listed] == [in_04["id"]]

    assert client.get(f"{API}/umkm/{in_04['id']}", headers=admin).status_code == 200
    assert client.get(f"{API}/umkm/{in_01['id']}", headers=admin).status_code == 404

    registrants = client.get(f"{API}/users", headers=admin).json()
    assert [user["username"] for user in registrants] == ["siti"]


def test_admin_cannot_edit_residents_profiles(client):
    register(client, "siti", "04")
    created = client.post(f"{API}/umkm", headers=login(client, "siti"), json=TOKO_BUNGA).json()

    admin = login(client, "admin", password="admin", rw="04")
    response = client.patch(f"{API}/umkm/{created['id']}", headers=admin, json={"status": "x"})
    assert response.status_code == 404


def test_registrant_list_is_admin_only(client):
    register(client, "siti", "04")
    response = client.get(f"{API}/users", headers=login(client, "siti"))
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_health_reports_storage(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["storage"] == "local"

    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/live").json() == {"status": "alive"}


def test_startup_normalizes_identifiers_before_indexing(storage, monkeypatch):
    calls = []

    async def open_storage():
        return storage

    async def normalize_identifiers():
        calls.append("normalize")

    async def create_indexes(opened):
        assert opened is storage
        calls.append("indexes")

    async def close_storage():
        calls.append("close")

    monkeypatch.setattr(main, "open_storage", open_storage)
    monkeypatch.setattr(main, "normalize_identifiers", normalize_identifiers)
    monkeypatch.setattr(main, "create_indexes", create_indexes)
    monkeypatch.setattr(main, "close_storage", close_storage)

    with TestClient(main.app) as client:
        assert client.get("/live").status_code == 200

    assert calls == ["normalize", "indexes", "close"]
