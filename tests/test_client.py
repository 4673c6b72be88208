import hashlib
import json

import httpx
import pytest

from ota_client import HttpUpdateClient, UpdateClientError, UpdateManifest, check_and_apply

BUNDLE = b"console.log('v2')"
BUNDLE_HASH = hashlib.sha256(BUNDLE).hexdigest()


def make_client(tmp_path, handler, **kwargs):
    reloads = []
    client = HttpUpdateClient(
        manifest_url="https://ota.example.com/api/manifest",
        app_id="app1",
        platform="ios",
        runtime_version="1.0.0",
        user_id="u1",
        bundle_dir=str(tmp_path / "bundles"),
        on_reload=reloads.append,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )
    return client, reloads


def server(manifest_status=200, bundle=BUNDLE, bundle_hash=BUNDLE_HASH, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/manifest":
            if seen is not None:
                seen.append(json.loads(request.content))
            if manifest_status == 200:
                return httpx.Response(
                    200,
                    json={"id": "r2", "bundleUrl": "https://cdn.example.com/b2.bundle?sig=x", "hash": bundle_hash},
                )
            if manifest_status == 204:
                return httpx.Response(204)
            return httpx.Response(manifest_status, json={"error": "Bundle not found for release"})
        if request.url.path == "/b2.bundle":
            return httpx.Response(200, content=bundle)
        return httpx.Response(404)

    return handler


def test_check_sends_device_identity(tmp_path):
    seen = []
    client, _ = make_client(tmp_path, server(seen=seen))

    result = client.check_for_update()

    assert result.is_available is True
    assert result.manifest == UpdateManifest(id="r2", bundle_url="https://cdn.example.com/b2.bundle?sig=x", hash=BUNDLE_HASH)
    assert seen == [{"appId": "app1", "platform": "ios", "runtimeVersion": "1.0.0", "userId": "u1"}]


def test_no_content_means_up_to_date(tmp_path):
    client, _ = make_client(tmp_path, server(manifest_status=204))

    assert client.check_for_update().is_available is False


def test_already_running_release_is_not_an_update(tmp_path):
    client, _ = make_client(tmp_path, server(), current_update_id="r2")

    assert client.check_for_update().is_available is False


def test_server_error_is_raised(tmp_path):
    client, _ = make_client(tmp_path, server(manifest_status=404))

    with pytest.raises(UpdateClientError, match="Bundle not found for release"):
        client.check_for_update()


def test_hash_mismatch_writes_nothing(tmp_path):
    client, _ = make_client(tmp_path, server(bundle=b"tampered"))
    manifest = client.check_for_update().manifest

    with pytest.raises(UpdateClientError, match="hash mismatch"):
        client.fetch_update(manifest)

    assert not (tmp_path / "bundles").exists()


def test_check_and_apply_fetches_and_reloads(tmp_path):
    client, reloads = make_client(tmp_path, server())

    applied = check_and_apply(client, confirm=lambda manifest: True)

    assert applied is True
    assert reloads == [tmp_path / "bundles" / "r2.bundle"]
    assert (tmp_path / "bundles" / "r2.bundle").read_bytes() == BUNDLE
    assert client.current_update_id == "r2"


def test_check_and_apply_respects_declined_prompt(tmp_path):
    client, reloads = make_client(tmp_path, server())

    assert check_and_apply(client, confirm=lambda manifest: False) is False
    assert reloads == []


def test_reload_without_fetched_update(tmp_path):
    client, _ = make_client(tmp_path, server())

    with pytest.raises(UpdateClientError):
        client.reload()


def test_non_json_manifest_is_client_error(tmp_path):
    client, _ = make_client(tmp_path, lambda request: httpx.Response(200, content=b"<html>gateway</html>"))

    with pytest.raises(UpdateClientError, match="Malformed manifest response"):
        client.check_for_update()


def release_server(update_id):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/manifest":
            return httpx.Response(
                200, json={"id": update_id, "bundleUrl": "https://cdn.example.com/b2.bundle", "hash": BUNDLE_HASH}
            )
        return httpx.Response(200, content=BUNDLE)

    return handler


def test_reload_records_manifest_id_not_file_name(tmp_path):
    client, _ = make_client(tmp_path, release_server("r2.1"))

    assert check_and_apply(client) is True
    assert client.current_update_id == "r2.1"
    assert client.check_for_update().is_available is False


def test_bundle_file_stays_inside_bundle_dir(tmp_path):
    client, reloads = make_client(tmp_path, release_server("../../evil"))

    assert check_and_apply(client) is True

    bundle_dir = (tmp_path / "bundles").resolve()
    assert reloads[0].resolve().parent == bundle_dir
    assert reloads[0].read_bytes() == BUNDLE
    assert client.current_update_id == "../../evil"
