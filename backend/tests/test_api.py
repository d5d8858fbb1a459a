"""
HTTP surface: status codes, payloads and role checks.
"""
from email.utils import format_datetime
from datetime import timedelta

from ebook_service.extensions import db
from ebook_service.models.audit_log import AuditLog
from ebook_service.models.pending_deletion import PendingDeletion
from ebook_service.utils.clock import utcnow
from ebook_service.utils.storage import StorageError

CDN = "https://cdn.test"
A = "ebooks/main/a.png"


def doc(*names):
    return {"type": "doc", "content": [{"type": "image", "src": f"{CDN}/ebooks/main/{n}"} for n in names]}


def make_version(client, headers, path="/api/v1/document/versions", **body):
    response = client.post(path, json=body, headers=headers)
    assert response.status_code == 200, response.get_json()
    return response.get_json()["id"]


# ============================================================================
# Public
# ============================================================================

def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "service": "ebook-service", "storage": "configured"}


def test_openapi_document_is_served(client):
    response = client.get("/openapi/ebook.yaml")

    assert response.status_code == 200
    assert b"openapi:" in response.data


# ============================================================================
# Auth
# ============================================================================

def test_document_requires_token(client):
    assert client.get("/api/v1/document").status_code == 401


def test_document_requires_author_role(client, reader_headers):
    assert client.get("/api/v1/document", headers=reader_headers).status_code == 403


def test_admin_routes_reject_authors(client, author_headers):
    assert client.get("/api/v1/admin/pending", headers=author_headers).status_code == 403


# ============================================================================
# Draft
# ============================================================================

class TestDocument:

    def test_get_put_round_trip(self, client, author_headers):
        response = client.put("/api/v1/document", json=doc("a.png"), headers=author_headers)
        assert response.status_code == 200
        assert response.get_json() == {"status": "saved"}

        response = client.get("/api/v1/document", headers=author_headers)
        assert response.get_json() == {"content": doc("a.png")}

        log = AuditLog.query.filter_by(action="ebook.autosave").one()
        assert log.actor_id == "author-1"

    def test_put_rejects_malformed_json(self, client, author_headers):
        response = client.put(
            "/api/v1/document",
            data="{not json",
            content_type="application/json",
            headers=author_headers,
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "ValidationError"

    def test_put_rejects_empty_body(self, client, author_headers):
        response = client.put("/api/v1/document", headers=author_headers)

        assert response.status_code == 400


# ============================================================================
# Versions
# ============================================================================

class TestVersions:

    def test_create_and_list(self, client, author_headers):
        client.put("/api/v1/document", json=doc("a.png"), headers=author_headers)

        response = client.post("/api/v1/document/versions", json={"label": "v1"}, headers=author_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "manual_version_created"

        response = client.get("/api/v1/document/versions", headers=author_headers)
        page = response.get_json()
        assert page["limit"] == 10
        assert page["offset"] == 0
        assert page["kind"] is None
        assert [item["id"] for item in page["items"]] == [body["id"]]
        item = page["items"][0]
        assert item["kind"] == "manual"
        assert item["label"] == "v1"
        assert item["storage_key"].startswith("ebook/versions/manual/")

    def test_create_without_body(self, client, author_headers):
        response = client.post("/api/v1/document/versions", headers=author_headers)

        assert response.status_code == 200

    def test_list_params_are_lenient(self, client, author_headers):
        response = client.get(
            "/api/v1/document/versions?limit=-5&offset=-3",
            headers=author_headers,
        )
        assert (response.get_json()["limit"], response.get_json()["offset"]) == (10, 0)

        response = client.get("/api/v1/document/versions?limit=5000", headers=author_headers)
        assert response.get_json()["limit"] == 10

        response = client.get("/api/v1/document/versions?limit=abc", headers=author_headers)
        assert response.get_json()["limit"] == 10

    def test_list_rejects_unknown_kind(self, client, author_headers):
        response = client.get("/api/v1/document/versions?kind=weird", headers=author_headers)

        assert response.status_code == 400

    def test_publish(self, client, author_headers):
        response = client.post("/api/v1/document/publish", json={"label": "launch"}, headers=author_headers)

        assert response.status_code == 200
        assert response.get_json()["status"] == "published"

        response = client.get("/api/v1/document/versions?kind=published", headers=author_headers)
        assert [i["label"] for i in response.get_json()["items"]] == ["launch"]

    def test_publish_from_manual(self, client, author_headers):
        manual_id = make_version(client, author_headers, label="draft 3")

        response = client.post(f"/api/v1/document/versions/{manual_id}/publish", headers=author_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "published"
        assert body["id"] != manual_id

    def test_publish_from_published_is_rejected(self, client, author_headers):
        published_id = make_version(client, author_headers, path="/api/v1/document/publish")

        response = client.post(f"/api/v1/document/versions/{published_id}/publish", headers=author_headers)

        assert response.status_code == 400

    def test_content(self, client, author_headers):
        client.put("/api/v1/document", json={"title": "snap"}, headers=author_headers)
        version_id = make_version(client, author_headers)

        response = client.get(f"/api/v1/document/versions/{version_id}/content", headers=author_headers)

        assert response.status_code == 200
        assert response.get_json() == {"id": version_id, "content": {"title": "snap"}}

    def test_restore(self, client, author_headers):
        client.put("/api/v1/document", json={"title": "old"}, headers=author_headers)
        version_id = make_version(client, author_headers)
        client.put("/api/v1/document", json={"title": "new"}, headers=author_headers)

        response = client.post(f"/api/v1/document/versions/{version_id}/restore", headers=author_headers)

        assert response.status_code == 200
        assert response.get_json() == {"status": "restored"}
        assert client.get("/api/v1/document", headers=author_headers).get_json() == {"content": {"title": "old"}}

    def test_delete(self, client, author_headers):
        client.put("/api/v1/document", json=doc("a.png"), headers=author_headers)
        version_id = make_version(client, author_headers)
        client.put("/api/v1/document", json=doc(), headers=author_headers)

        response = client.delete(f"/api/v1/document/versions/{version_id}", headers=author_headers)

        assert response.status_code == 200
        assert response.get_json() == {"status": "deleted", "scheduled": [A]}

    def test_unknown_version_is_404(self, client, author_headers):
        for method, path in (
            ("get", "/api/v1/document/versions/nope/content"),
            ("post", "/api/v1/document/versions/nope/restore"),
            ("post", "/api/v1/document/versions/nope/publish"),
            ("delete", "/api/v1/document/versions/nope"),
        ):
            response = getattr(client, method)(path, headers=author_headers)
            assert response.status_code == 404, path
            assert response.get_json()["error"] == "NotFound"

    def test_storage_failure_is_424(self, client, author_headers, storage):
        storage.fail_on["put"] = StorageError("Timeout", code="Timeout")

        response = client.post("/api/v1/document/versions", headers=author_headers)

        assert response.status_code == 424
        assert response.get_json()["error"] == "DependencyUnavailable"

    def test_storage_not_configured_is_424(self, client, author_headers, storage):
        storage._enabled = False

        response = client.post("/api/v1/document/publish", headers=author_headers)

        assert response.status_code == 424


class TestRename:

    def test_rename(self, client, author_headers):
        version_id = make_version(client, author_headers, label="old")

        response = client.patch(
            f"/api/v1/document/versions/{version_id}",
            json={"label": "new"},
            headers=author_headers,
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "renamed"
        assert body["version"]["label"] == "new"

    def test_label_is_required(self, client, author_headers):
        version_id = make_version(client, author_headers)

        response = client.patch(f"/api/v1/document/versions/{version_id}", json={}, headers=author_headers)

        assert response.status_code == 400

    def test_stale_if_unmodified_since_conflicts(self, client, author_headers):
        version_id = make_version(client, author_headers)
        stale = format_datetime(utcnow() - timedelta(hours=1), usegmt=True)

        response = client.patch(
            f"/api/v1/document/versions/{version_id}",
            json={"label": "new"},
            headers={**author_headers, "If-Unmodified-Since": stale},
        )

        assert response.status_code == 409

    def test_garbage_if_unmodified_since(self, client, author_headers):
        version_id = make_version(client, author_headers)

        response = client.patch(
            f"/api/v1/document/versions/{version_id}",
            json={"label": "new"},
            headers={**author_headers, "If-Unmodified-Since": "not a date"},
        )

        assert response.status_code == 400


# ============================================================================
# Media
# ============================================================================

class TestMediaDelete:

    def test_live_media_is_skipped(self, client, author_headers):
        client.put("/api/v1/document", json=doc("a.png"), headers=author_headers)

        response = client.delete("/api/v1/media", json={"media_url": f"{CDN}/{A}"}, headers=author_headers)

        assert response.status_code == 200
        assert response.get_json() == {"status": "skipped", "key": A}
        assert db.session.get(PendingDeletion, A) is None

    def test_unreferenced_media_is_scheduled(self, client, author_headers):
        response = client.delete("/api/v1/media", json={"media_key": A}, headers=author_headers)

        assert response.get_json() == {"status": "scheduled", "key": A}
        assert db.session.get(PendingDeletion, A) is not None

    def test_outside_prefix_is_rejected(self, client, author_headers):
        response = client.delete(
            "/api/v1/media",
            json={"media_url": "https://elsewhere.test/ebooks/main/a.png"},
            headers=author_headers,
        )

        assert response.status_code == 400

    def test_body_required(self, client, author_headers):
        assert client.delete("/api/v1/media", headers=author_headers).status_code == 400


# ============================================================================
# Admin
# ============================================================================

class TestAdmin:

    def test_pending_and_inspect(self, client, author_headers, admin_headers):
        client.put("/api/v1/document", json=doc("a.png"), headers=author_headers)
        version_id = make_version(client, author_headers)
        client.put("/api/v1/document", json=doc(), headers=author_headers)
        client.delete(f"/api/v1/document/versions/{version_id}", headers=author_headers)

        page = client.get("/api/v1/admin/pending", headers=admin_headers).get_json()
        assert page["limit"] == 20
        assert [item["media_key"] for item in page["items"]] == [A]

        response = client.get(f"/api/v1/admin/inspect?media_url={CDN}/{A}", headers=admin_headers)
        body = response.get_json()
        assert body["media_key"] == A
        assert body["live"] is False
        assert body["pending"]["attempts"] == 0
        assert body["versions"] == []

    def test_media_list_filters_by_liveness(self, client, author_headers, admin_headers):
        client.put("/api/v1/document", json=doc("a.png", "b.png"), headers=author_headers)
        client.put("/api/v1/document", json=doc("b.png"), headers=author_headers)

        live = client.get("/api/v1/admin/media?live=true", headers=admin_headers).get_json()
        dead = client.get("/api/v1/admin/media?live=false", headers=admin_headers).get_json()

        assert [i["media_key"] for i in live["items"]] == ["ebooks/main/b.png"]
        assert [i["media_key"] for i in dead["items"]] == [A]

    def test_reindex(self, client, admin_headers):
        response = client.post("/api/v1/admin/reindex", headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["status"] == "reindexed"
