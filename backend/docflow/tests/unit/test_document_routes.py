"""
Unit tests for the document API routes.

Tests cover:
- POST /api/documents: multipart create with file, role check
- GET /api/documents: search and pagination envelope
- GET/PATCH/DELETE /api/documents/{id}: ownership checks
- GET /api/documents/{id}/download: stored file streaming
"""

import pytest

from docflow.api.routes.documents import get_document_service, router
from docflow.documents.service import DocumentService


@pytest.fixture
def client(make_client, db_session, tmp_path):
    service = DocumentService(db_session, upload_dir=str(tmp_path / "uploads"))
    return make_client(router, overrides={get_document_service: lambda: service})


@pytest.fixture
def editor(make_user):
    return make_user("doc-editor@example.com", roles=["editor"])


@pytest.fixture
def viewer(make_user):
    return make_user("doc-viewer@example.com", roles=["viewer"])


class TestCreateDocumentRoute:

    def test_create_with_file(self, client, editor, auth_headers):
        """Multipart create stores the file and returns 201."""
        response = client.post(
            "/api/documents",
            data={"title": "Receipt", "description": "Lunch", "status": "published"},
            files={"file": ("receipt.pdf", b"%PDF-1.7 data", "application/pdf")},
            headers=auth_headers(editor),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Receipt"
        assert data["status"] == "published"
        assert data["original_file_name"] == "receipt.pdf"
        assert data["file_size"] == 13
        assert data["created_by_id"] == editor.id

    def test_create_without_file(self, client, editor, auth_headers):
        response = client.post(
            "/api/documents", data={"title": "Plain"}, headers=auth_headers(editor)
        )

        assert response.status_code == 201
        assert response.json()["status"] == "draft"
        assert response.json()["file_name"] is None

    def test_viewer_cannot_create(self, client, viewer, auth_headers):
        response = client.post(
            "/api/documents", data={"title": "Nope"}, headers=auth_headers(viewer)
        )
        assert response.status_code == 403

    def test_title_required(self, client, editor, auth_headers):
        response = client.post("/api/documents", data={}, headers=auth_headers(editor))
        assert response.status_code == 422


class TestReadDocumentRoutes:

    def test_search_envelope(self, client, editor, make_document, auth_headers):
        make_document(editor, title="Invoice March")
        make_document(editor, title="Contract")

        response = client.get(
            "/api/documents?search=invoice&limit=5", headers=auth_headers(editor)
        )

        assert response.status_code == 200
        data = response.json()
        assert [doc["title"] for doc in data["documents"]] == ["Invoice March"]
        assert data["pagination"] == {"page": 1, "limit": 5, "total": 1, "total_pages": 1}

    def test_invalid_sort_field(self, client, editor, auth_headers):
        response = client.get("/api/documents?sort_by=owner", headers=auth_headers(editor))
        assert response.status_code == 422

    def test_get_other_users_document(self, client, editor, viewer, make_document, auth_headers):
        document = make_document(editor)

        response = client.get(f"/api/documents/{document.id}", headers=auth_headers(viewer))

        assert response.status_code == 403

    def test_get_unknown_document(self, client, editor, auth_headers):
        response = client.get("/api/documents/999999", headers=auth_headers(editor))
        assert response.status_code == 404


class TestModifyDocumentRoutes:

    def test_patch(self, client, editor, make_document, auth_headers):
        document = make_document(editor, title="Old title")

        response = client.patch(
            f"/api/documents/{document.id}",
            json={"title": "New title", "status": "archived"},
            headers=auth_headers(editor),
        )

        assert response.status_code == 200
        assert response.json()["title"] == "New title"
        assert response.json()["status"] == "archived"
        assert response.json()["updated_by_id"] == editor.id

    def test_delete(self, client, editor, make_document, auth_headers):
        document = make_document(editor)

        response = client.delete(f"/api/documents/{document.id}", headers=auth_headers(editor))

        assert response.status_code == 204
        follow_up = client.get(f"/api/documents/{document.id}", headers=auth_headers(editor))
        assert follow_up.status_code == 404

    def test_download(self, client, editor, auth_headers):
        created = client.post(
            "/api/documents",
            data={"title": "Notes"},
            files={"file": ("notes.txt", b"hello world", "text/plain")},
            headers=auth_headers(editor),
        ).json()

        response = client.get(
            f"/api/documents/{created['id']}/download", headers=auth_headers(editor)
        )

        assert response.status_code == 200
        assert response.content == b"hello world"
        assert "notes.txt" in response.headers["content-disposition"]

    def test_download_without_file(self, client, editor, make_document, auth_headers):
        document = make_document(editor, file_path=None)

        response = client.get(
            f"/api/documents/{document.id}/download", headers=auth_headers(editor)
        )

        assert response.status_code == 404
