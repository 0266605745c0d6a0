"""Tests for the FastAPI asset service."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from assetserve.config import AssetServeConfig, MountConfig, WatchConfig
from assetserve.hashing import token_for
from assetserve.server import AssetServer
from assetserve.service import create_app
from tests._fixtures.asset_tree import AssetTree


@pytest.fixture
def client(server: AssetServer, asset_tree: AssetTree) -> TestClient:
    asset_tree.write(
        {
            "css/app.css": "body { color: red; }",
            "favicon.ico": b"\x00\x00\x01\x00icon",
            "robots.txt": "User-agent: *\nDisallow:\n",
        }
    )
    server.mount("/static/", asset_tree.path(), root_files=True)
    return TestClient(create_app(server))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "mounts": 1}


def test_serves_file_with_validators(client: TestClient) -> None:
    response = client.get("/static/css/app.css")

    assert response.status_code == 200
    assert response.text == "body { color: red; }"
    assert response.headers["content-type"].startswith("text/css")
    assert "etag" in response.headers
    assert "last-modified" in response.headers
    assert "expires" not in response.headers


def test_cache_busting_parameter_sets_long_lived_headers(client: TestClient) -> None:
    response = client.get("/static/css/app.css", params={"v": "abcd"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=315360000"
    assert response.headers["expires"] == "Thu, 31 Dec 2037 23:55:55 GMT"


def test_if_none_match_returns_not_modified(client: TestClient) -> None:
    etag = client.get("/static/css/app.css").headers["etag"]

    response = client.get("/static/css/app.css", headers={"If-None-Match": etag})

    assert response.status_code == 304
    assert response.content == b""


def test_if_modified_since_returns_not_modified(client: TestClient) -> None:
    last_modified = client.get("/static/css/app.css").headers["last-modified"]

    response = client.get(
        "/static/css/app.css", headers={"If-Modified-Since": last_modified}
    )

    assert response.status_code == 304


def test_range_request(client: TestClient) -> None:
    response = client.get("/static/css/app.css", headers={"Range": "bytes=0-3"})

    assert response.status_code == 206
    assert response.content == b"body"


def test_head_request_has_no_body(client: TestClient) -> None:
    response = client.head("/static/css/app.css")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["content-length"] == str(len("body { color: red; }"))


def test_missing_file_returns_404(client: TestClient) -> None:
    response = client.get("/static/missing.css")

    assert response.status_code == 404
    assert "detail" in response.json()


def test_unmounted_path_returns_404(client: TestClient) -> None:
    response = client.get("/media/app.css")
    assert response.status_code == 404


@pytest.mark.parametrize(
    "request_path",
    [
        "/static/%2e%2e/secret.txt",
        "/static/%2E%2E/%2e%2e/secret.txt",
        "/static/css/%2e%2e/%2e%2e/secret.txt",
    ],
)
def test_encoded_parent_segments_stay_inside_mount(
    client: TestClient, asset_tree: AssetTree, request_path: str
) -> None:
    (asset_tree.path().parent / "secret.txt").write_text("do-not-serve", encoding="utf-8")

    response = client.get(request_path)

    assert response.status_code == 404
    assert "do-not-serve" not in response.text


@pytest.mark.parametrize(
    ("request_path", "expected"),
    [("/favicon.ico", b"\x00\x00\x01\x00icon"), ("/robots.txt", b"User-agent: *\nDisallow:\n")],
)
def test_root_files_passthrough(client: TestClient, request_path: str, expected: bytes) -> None:
    response = client.get(request_path)

    assert response.status_code == 200
    assert response.content == expected


def test_deleted_file_returns_404(client: TestClient, asset_tree: AssetTree) -> None:
    assert client.get("/static/css/app.css").status_code == 200

    asset_tree.remove("css/app.css")

    assert client.get("/static/css/app.css").status_code == 404


def test_asset_url_endpoint(client: TestClient) -> None:
    response = client.get("/_assets/url", params={"prefix": "/static/", "name": "css/app.css"})

    assert response.status_code == 200
    token = token_for(b"body { color: red; }")
    assert response.json() == {"url": f"/static/css/app.css?v={token}", "token": token}


def test_asset_url_endpoint_unknown_prefix(client: TestClient) -> None:
    response = client.get("/_assets/url", params={"prefix": "/nope/", "name": "a.css"})
    assert response.status_code == 404


def test_app_built_from_config_closes_server(asset_tree: AssetTree, tmp_path: Path) -> None:
    asset_tree.write({"app.js": "console.log(1);"})
    config = AssetServeConfig(
        root=tmp_path,
        watch=WatchConfig(use_polling=True, poll_interval=0.1),
        mounts=[MountConfig(prefix="/js/", directory=asset_tree.path())],
    )
    app = create_app(config=config)
    asset_server: AssetServer = app.state.asset_server

    with TestClient(app) as client:
        assert client.get("/js/app.js").text == "console.log(1);"
        assert asset_server.registrar.running

    assert not asset_server.registrar.running
