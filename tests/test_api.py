"""
Tests for the HTTP surface.

Feature: gitpeek
"""

import base64

import pytest
from fastapi.testclient import TestClient

from gitpeek.api import create_app
from gitpeek.client import GitHubClient
from gitpeek.config import Settings
from gitpeek.store import Store
from gitpeek.testing import FakeGitHub, create_owner
from gitpeek.testing.fixtures import Owner

PNG = b"\x89PNG\r\n\x1a\n" + bytes(32)


@pytest.fixture
def client(store: Store, github: GitHubClient) -> TestClient:
    app = create_app(Settings(database_url="sqlite://"), store=store, github=github)
    return TestClient(app)


@pytest.fixture
def redirect_id(fake_github: FakeGitHub, store: Store, owner: Owner) -> str:
    fake_github.add_file("acme", "widgets", "README.md", "# Widgets\n![Logo](docs/logo.png)")
    fake_github.add_file("acme", "widgets", "LICENSE", "MIT License\n\nCopyright (c) 2024 Acme")
    fake_github.add_file("acme", "widgets", "docs/logo.png", PNG)
    fake_github.add_file("acme", "widgets", "src/app.py", "print('hi')\n")
    return store.publish(owner.user_id, "https://github.com/acme/widgets").id


class TestImageRelay:
    def test_missing_parameters(self, client: TestClient) -> None:
        for params in [{}, {"repoId": "r"}, {"path": "a.png"}, {"repoId": "", "path": "a.png"}]:
            response = client.get("/api/image", params=params)
            assert response.status_code == 400
            assert response.json() == {"error": "Missing repoId or path parameter"}

    def test_image_found(self, client: TestClient, redirect_id: str) -> None:
        response = client.get("/api/image", params={"repoId": redirect_id, "path": "docs/logo.png"})

        assert response.status_code == 200
        image_data = response.json()["imageData"]
        assert image_data == "data:image/png;base64," + base64.b64encode(PNG).decode("ascii")

    def test_image_not_found(self, client: TestClient, redirect_id: str) -> None:
        response = client.get("/api/image", params={"repoId": redirect_id, "path": "docs/missing.png"})

        assert response.status_code == 404
        assert response.json() == {"error": "Image not found or access denied"}

    def test_unknown_redirect_looks_the_same(self, client: TestClient) -> None:
        response = client.get("/api/image", params={"repoId": "nope", "path": "docs/logo.png"})

        assert response.status_code == 404
        assert response.json() == {"error": "Image not found or access denied"}


class TestSnapshot:
    def test_snapshot(self, client: TestClient, store: Store, redirect_id: str) -> None:
        response = client.get(f"/api/repos/{redirect_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["repo"]["fullName"] == "acme/widgets"
        assert body["repo"]["visibility"] == "private"
        assert [e["name"] for e in body["entries"]] == ["README.md", "LICENSE", "docs", "src"]
        assert '<h1 class="md-h1">Widgets</h1>' in body["readme"]["html"]
        assert 'src="data:image/png;base64,' in body["readme"]["html"]
        assert body["license"]["title"] == "MIT License"
        assert store.get_view_stats(redirect_id).count == 1

    def test_failures_share_one_response(self, client: TestClient, store: Store) -> None:
        tokenless = create_owner(store, access_token=None)
        no_token_id = store.publish(tokenless.user_id, "acme/widgets").id

        for redirect in ["does-not-exist", no_token_id]:
            response = client.get(f"/api/repos/{redirect}")
            assert response.status_code == 404
            assert response.json() == {"error": "Repository not found"}

        assert store.get_view_stats(no_token_id).count == 0

    def test_stats(self, client: TestClient, redirect_id: str) -> None:
        client.get(f"/api/repos/{redirect_id}")
        client.get(f"/api/repos/{redirect_id}")

        response = client.get(f"/api/repos/{redirect_id}/stats")

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert response.json()["lastViewed"] is not None
        assert client.get("/api/repos/missing/stats").status_code == 404


class TestBrowsing:
    def test_contents(self, client: TestClient, redirect_id: str) -> None:
        response = client.get(f"/api/repos/{redirect_id}/contents", params={"path": "docs"})

        assert response.status_code == 200
        body = response.json()
        assert body["breadcrumbs"] == [{"name": "docs", "path": "docs"}]
        assert body["entries"][0]["name"] == "logo.png"
        assert body["entries"][0]["sizeLabel"] == "40 B"

    def test_contents_failure(self, client: TestClient, redirect_id: str) -> None:
        response = client.get(f"/api/repos/{redirect_id}/contents", params={"path": "missing"})

        assert response.status_code == 404
        assert response.json() == {"error": "Failed to load directory contents"}

    def test_file(self, client: TestClient, redirect_id: str) -> None:
        response = client.get(f"/api/repos/{redirect_id}/file", params={"path": "src/app.py"})

        assert response.status_code == 200
        assert response.json() == {
            "path": "src/app.py",
            "content": "print('hi')\n",
            "language": "python",
            "binary": False,
        }

    def test_file_errors(self, client: TestClient, redirect_id: str) -> None:
        assert client.get(f"/api/repos/{redirect_id}/file").status_code == 400

        response = client.get(f"/api/repos/{redirect_id}/file", params={"path": "nope.py"})
        assert response.status_code == 404
        assert response.json() == {"error": "Failed to load file content"}

    def test_paths_cannot_leave_the_shared_repository(self, client: TestClient, fake_github: FakeGitHub,
                                                      redirect_id: str) -> None:
        fake_github.add_repo("acme", "secret")
        fake_github.add_file("acme", "secret", "keys.txt", "TOP SECRET")
        fake_github.add_file("acme", "secret", "logo.png", PNG)

        file_response = client.get(f"/api/repos/{redirect_id}/file", params={"path": "../../secret/contents/keys.txt"})
        contents_response = client.get(f"/api/repos/{redirect_id}/contents", params={"path": "../../secret/contents"})
        image_response = client.get("/api/image", params={"repoId": redirect_id, "path": "../../secret/contents/logo.png"})

        assert file_response.status_code == 404
        assert "TOP SECRET" not in file_response.text
        assert contents_response.status_code == 404
        assert image_response.status_code == 404
        assert not any("secret" in call.path for call in fake_github.get_calls())
