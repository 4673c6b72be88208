from urllib.parse import urlsplit

from ota_server.api.deps import get_artifact_store, get_resolver
from ota_server.main import app
from ota_server.models import DownloadMetric, Platform, UserOtaSetting
from ota_server.services.resolver import ManifestResolver
from ota_server.services.storage import LocalArtifactStore

from test_resolver import FakeRepository, FakeStore


def manifest_body(**overrides):
    body = {"appId": "app1", "platform": "ios", "runtimeVersion": "1.0.0", "userId": "u1"}
    body.update(overrides)
    return body


def test_missing_fields_rejected_before_any_query(client):
    repository = FakeRepository()
    store = FakeStore()
    app.dependency_overrides[get_resolver] = lambda: ManifestResolver(repository, store)

    for body in (manifest_body(userId=None), manifest_body(runtimeVersion=""), {"appId": "app1"}):
        response = client.post("/api/manifest", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "userId and runtimeVersion are required"}

    assert sum(repository.calls.values()) == 0
    assert store.calls == []


def test_missing_or_null_body_is_bad_request(client):
    repository = FakeRepository()
    app.dependency_overrides[get_resolver] = lambda: ManifestResolver(repository, FakeStore())

    responses = [
        client.post("/api/manifest"),
        client.post("/api/manifest", content="null", headers={"Content-Type": "application/json"}),
    ]

    for response in responses:
        assert response.status_code == 400
        assert response.json() == {"error": "userId and runtimeVersion are required"}
    assert sum(repository.calls.values()) == 0


def test_opted_out_user_gets_no_content(client, db, make_release):
    make_release()
    db.add(UserOtaSetting(user_id="u1", ota_enabled=False))
    db.commit()

    response = client.post("/api/manifest", json=manifest_body())

    assert response.status_code == 204
    assert response.content == b""


def test_unknown_runtime_gets_no_content(client, make_release):
    make_release()

    response = client.post("/api/manifest", json=manifest_body(runtimeVersion="2.0.0"))

    assert response.status_code == 204


def test_release_without_bundle_is_not_found(client, make_release):
    make_release(with_bundle=False)

    response = client.post("/api/manifest", json=manifest_body())

    assert response.status_code == 404
    assert response.json() == {"error": "Bundle not found for release"}


def test_signing_failure_returns_details(client, make_release, tmp_path):
    make_release()
    app.dependency_overrides[get_artifact_store] = lambda: LocalArtifactStore(
        base_dir=str(tmp_path), base_url="http://testserver", secret=None
    )

    response = client.post("/api/manifest", json=manifest_body())

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to create signed URL",
        "details": {"message": "SIGNED_URL_SECRET is not set"},
    }


def test_end_to_end_update_and_download(client, db, make_release, tmp_path):
    release = make_release(file_path="b1.bundle", file_hash="abc123")
    (tmp_path / "b1.bundle").write_bytes(b"bundle-bytes")

    response = client.post("/api/manifest", json=manifest_body())

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(release.id)
    assert data["hash"] == "abc123"
    assert data["bundleUrl"].startswith("http://testserver/api/bundles/b1.bundle?")

    download = client.get(data["bundleUrl"])
    assert download.status_code == 200
    assert download.content == b"bundle-bytes"

    metric = db.query(DownloadMetric).filter(DownloadMetric.release_id == release.id).one()
    assert metric.platform == Platform.ios
    assert metric.count == 1


def test_unknown_platform_is_served_but_not_counted(client, db, make_release):
    make_release()

    response = client.post("/api/manifest", json=manifest_body(platform="web"))

    assert response.status_code == 200
    assert db.query(DownloadMetric).count() == 0


def test_download_rejects_tampered_signature(client, make_release, tmp_path):
    make_release()
    (tmp_path / "b1.bundle").write_bytes(b"bundle-bytes")
    url = client.post("/api/manifest", json=manifest_body()).json()["bundleUrl"]
    parts = urlsplit(url)

    response = client.get(f"{parts.path}?{parts.query[:-4]}beef")

    assert response.status_code == 403


def test_download_requires_signature(client):
    response = client.get("/api/bundles/b1.bundle")

    assert response.status_code == 403


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
