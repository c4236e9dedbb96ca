import hashlib
import io

import pytest
from fastapi import UploadFile

from ..core.errors import InternalError, NotInitializedError
from ..storage.gateway import StorageSettings
from ..storage.models import FileObject, MinIOConfig
from .conftest import API, auth_headers


def config_payload(name="primary", **overrides):
    payload = {
        "name": name,
        "endpoint": "minio.local:9000",
        "access_key": "access",
        "secret_key": "super-secret",
        "bucket_name": "portfolio",
        "is_active": True,
    }
    payload.update(overrides)
    return payload


def create_config(client, admin, **kwargs):
    response = client.post(f"{API}/admin/minio/configs", json=config_payload(**kwargs), headers=auth_headers(admin))
    assert response.status_code == 201, response.text
    return response.json()["config"]


def upload(client, user, name="logo.png", content=b"abc", is_public=False):
    return client.post(
        f"{API}/files/upload",
        files={"file": (name, content, "image/png")},
        data={"is_public": "true" if is_public else "false", "category": "cover"},
        headers=auth_headers(user),
    )


def active_names(db):
    db.expire_all()
    return [c.name for c in db.query(MinIOConfig).filter(MinIOConfig.is_active.is_(True)).all()]


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

def test_create_active_config_initializes_gateway(client, admin, storage, fake_minio):
    config = create_config(client, admin)
    assert config["secret_key"] == "******"
    assert storage.is_initialized
    assert storage.get_active_config().bucket_name == "portfolio"
    assert "portfolio" in fake_minio.buckets


def test_secret_is_masked_and_kept_on_update(client, db, admin, fake_minio):
    config = create_config(client, admin)

    listed = client.get(f"{API}/admin/minio/configs", headers=auth_headers(admin)).json()["data"]
    assert [c["secret_key"] for c in listed] == ["******"]

    for secret in ("******", "", None):
        fake_minio.secrets_seen.clear()
        response = client.put(
            f"{API}/admin/minio/configs/{config['id']}",
            json=config_payload(secret_key=secret, description="edited"),
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["config"]["secret_key"] == "******"
        db.expire_all()
        assert db.get(MinIOConfig, config["id"]).secret_key == "super-secret"
        assert fake_minio.secrets_seen
        assert set(fake_minio.secrets_seen) == {"super-secret"}

    fake_minio.secrets_seen.clear()
    client.put(
        f"{API}/admin/minio/configs/{config['id']}",
        json=config_payload(secret_key="rotated"),
        headers=auth_headers(admin),
    )
    assert set(fake_minio.secrets_seen) == {"rotated"}
    db.expire_all()
    assert db.get(MinIOConfig, config["id"]).secret_key == "rotated"


def test_at_most_one_active_config(client, db, admin, storage):
    first = create_config(client, admin, name="first")
    create_config(client, admin, name="second", bucket_name="second-bucket")
    assert active_names(db) == ["second"]
    assert storage.get_active_config().name == "second"

    response = client.post(f"{API}/admin/minio/configs/{first['id']}/activate", headers=auth_headers(admin))
    assert response.status_code == 200
    assert active_names(db) == ["first"]
    assert storage.get_active_config().name == "first"


def test_activate_missing_config(client, admin):
    response = client.post(f"{API}/admin/minio/configs/999/activate", headers=auth_headers(admin))
    assert response.status_code == 404


def test_unreachable_endpoint_is_rejected(client, db, admin, fake_minio):
    fake_minio.unreachable = True
    response = client.post(f"{API}/admin/minio/configs", json=config_payload(), headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"
    assert "super-secret" not in response.text
    assert db.query(MinIOConfig).count() == 0

    response = client.post(f"{API}/admin/minio/test", json=config_payload(), headers=auth_headers(admin))
    assert response.status_code == 400


def test_connection_test_endpoints(client, admin):
    config = create_config(client, admin, is_active=False)
    assert client.post(f"{API}/admin/minio/test", json=config_payload(), headers=auth_headers(admin)).status_code == 200
    response = client.post(f"{API}/admin/minio/configs/{config['id']}/test", headers=auth_headers(admin))
    assert response.status_code == 200


def test_duplicate_config_name(client, admin):
    create_config(client, admin)
    response = client.post(f"{API}/admin/minio/configs", json=config_payload(), headers=auth_headers(admin))
    assert response.status_code == 409


def test_config_with_files_cannot_be_deleted(client, admin, alice):
    first = create_config(client, admin, name="first")
    assert upload(client, alice).status_code == 201
    create_config(client, admin, name="second")

    response = client.delete(f"{API}/admin/minio/configs/{first['id']}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_operation"

    spare = create_config(client, admin, name="spare", is_active=False)
    assert client.delete(f"{API}/admin/minio/configs/{spare['id']}", headers=auth_headers(admin)).status_code == 200


def test_storage_admin_requires_admin(client, alice):
    assert client.get(f"{API}/admin/minio/configs", headers=auth_headers(alice)).status_code == 403


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def test_operations_before_activation_are_not_initialized(client, alice):
    response = upload(client, alice)
    assert response.status_code == 503
    assert response.json() == {"error": "not_initialized", "detail": "minio client not initialized"}
    assert client.get(f"{API}/files/anything/url").status_code == 503


def test_upload_and_resolve_urls(client, admin, alice, fake_minio):
    create_config(client, admin)

    response = upload(client, alice, content=b"abc")
    assert response.status_code == 201
    stored = response.json()["file"]
    assert stored["md5_hash"] == hashlib.md5(b"abc").hexdigest()
    assert stored["file_size"] == 3
    assert stored["storage_path"] == stored["id"] + ".png"
    assert stored["uploaded_by"] == alice.id
    assert stored["tags"] == {"category": "cover"}
    assert fake_minio.objects[("portfolio", stored["storage_path"])] == b"abc"

    url = client.get(f"{API}/files/{stored['id']}/url").json()["url"]
    assert url == f"https://signed.example/portfolio/{stored['storage_path']}?expires=3600"

    public = upload(client, alice, is_public=True).json()["file"]
    url = client.get(f"{API}/files/{public['id']}/url").json()["url"]
    assert url == f"https://minio.local:9000/portfolio/{public['storage_path']}"


def test_private_bucket_always_presigns(client, admin, alice):
    create_config(client, admin, is_private=True, use_ssl=False, url_expiry=60)
    public = upload(client, alice, is_public=True).json()["file"]
    url = client.get(f"{API}/files/{public['id']}/url").json()["url"]
    assert url.startswith("https://signed.example/")
    assert url.endswith("expires=60")


def test_delete_file_soft_deletes_record(client, db, admin, alice, bob, fake_minio):
    create_config(client, admin)
    stored = upload(client, alice).json()["file"]

    assert client.delete(f"{API}/files/{stored['id']}", headers=auth_headers(bob)).status_code == 403
    assert client.delete(f"{API}/files/{stored['id']}", headers=auth_headers(alice)).status_code == 200
    assert stored["storage_path"] in fake_minio.removed
    assert client.get(f"{API}/files/{stored['id']}/url").status_code == 404

    db.expire_all()
    assert db.get(FileObject, stored["id"]).deleted_at is not None


def test_delete_survives_remote_failure(client, db, admin, alice, fake_minio):
    create_config(client, admin)
    stored = upload(client, alice).json()["file"]
    fake_minio.fail_remove = True

    assert client.delete(f"{API}/files/{stored['id']}", headers=auth_headers(alice)).status_code == 200
    db.expire_all()
    assert db.get(FileObject, stored["id"]).deleted_at is not None


def test_list_files(client, admin, alice, bob):
    create_config(client, admin)
    upload(client, alice, is_public=True)
    upload(client, bob, name="notes.txt")

    body = client.get(f"{API}/files").json()
    assert body["total"] == 2
    assert all(item["url"] for item in body["data"])

    body = client.get(f"{API}/files", params={"user_id": alice.id}).json()
    assert body["total"] == 1
    assert client.get(f"{API}/files", params={"is_public": "true"}).json()["total"] == 1
    assert client.get(f"{API}/files", params={"content_type": "image"}).json()["total"] == 2


def test_portfolio_cover_image_resolves_through_gateway(client, admin, alice):
    create_config(client, admin)
    stored = upload(client, alice, is_public=True).json()["file"]

    response = client.post(
        f"{API}/portfolios",
        json={"title": "With cover", "category": "web", "aiLevel": "none", "imageObjectId": stored["id"]},
        headers=auth_headers(alice),
    )
    portfolio = response.json()["data"]
    assert portfolio["imageUrl"].endswith(stored["storage_path"])
    assert portfolio["image"] == portfolio["imageUrl"]


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

def settings_for(name="primary", config_id=1):
    return StorageSettings(
        id=config_id, name=name, endpoint="minio.local:9000", access_key="a",
        secret_key="s", bucket_name="portfolio",
    )


def test_failed_initialization_keeps_previous_client(storage, fake_minio):
    storage.initialize_client(settings_for("old"))
    fake_minio.unreachable = True
    with pytest.raises(InternalError):
        storage.initialize_client(settings_for("new", 2))
    assert storage.get_active_config().name == "old"


def test_uninitialized_gateway(storage, db):
    assert not storage.is_initialized
    with pytest.raises(NotInitializedError):
        storage.get_file_url(db, "missing")


def test_failed_record_insert_removes_uploaded_object(storage, db, fake_minio, monkeypatch):
    db.add(MinIOConfig(name="primary", endpoint="minio.local:9000", access_key="a",
                       secret_key="s", bucket_name="portfolio", is_active=True))
    db.commit()
    assert storage.load_active_config(db)

    def broken_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(db, "commit", broken_commit)
    upload_file = UploadFile(file=io.BytesIO(b"payload"), filename="doc.pdf")
    with pytest.raises(InternalError):
        storage.upload_file(db, upload_file, "user-1")

    assert len(fake_minio.removed) == 1
    assert fake_minio.removed[0].endswith(".pdf")
    assert fake_minio.objects == {}


def test_load_active_config_without_active_row(storage, db):
    assert storage.load_active_config(db) is False
    assert not storage.is_initialized


def test_load_active_config_at_startup(db, storage, fake_minio):
    assert storage.load_active_config(db) is False
    assert not storage.is_initialized

    db.add(MinIOConfig(
        name="startup", endpoint="minio.local:9000", access_key="access",
        secret_key="super-secret", bucket_name="portfolio", is_active=True,
    ))
    db.commit()

    fake_minio.unreachable = True
    assert storage.load_active_config(db) is False
    assert not storage.is_initialized

    fake_minio.unreachable = False
    assert storage.load_active_config(db) is True
    assert storage.get_active_config().name == "startup"
    assert "portfolio" in fake_minio.buckets
