"""API tests for importer endpoints."""

import pytest
from fastapi.testclient import TestClient

from entity_importer.api.dependencies import get_services
from entity_importer.api.main import app
from entity_importer.container import ImporterServices
from entity_importer.services.transforms import LOOKUP_PLUGIN_ID
from entity_importer.storage.config_store import InMemoryConfigStore


@pytest.fixture
def services(settings) -> ImporterServices:
    return ImporterServices.from_settings(settings, store=InMemoryConfigStore())


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def _save_articles(client, display_page=True):
    response = client.put("/api/importers/p1", json={
        "label": "Articles",
        "display_page": display_page,
        "source": {"plugin_id": "entity_import_csv", "configuration": {"has_header": True}},
        "entity": {"type": "node", "bundles": ["article"]},
    })
    assert response.status_code == 200
    response = client.put("/api/importers/p1/field-mappings", json={
        "name": "full_name",
        "destination": "title",
        "importer_bundle": "article",
    })
    assert response.status_code == 200


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}


def test_save_and_list_importers(client):
    _save_articles(client)

    body = client.get("/api/importers").json()

    assert body["total"] == 1
    assert body["importers"][0]["bundles"] == ["article"]


def test_saving_new_page_importer_reports_page_change(client):
    response = client.put("/api/importers/p2", json={"display_page": True})

    assert response.json()["page_display_changed"] is True


def test_get_unknown_importer_is_404(client):
    response = client.get("/api/importers/missing")

    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "profile_not_found"


def test_compiled_pipeline(client):
    _save_articles(client)

    body = client.get("/api/importers/p1/pipelines/article").json()

    assert body["id"] == "entity_import:p1:article"
    assert body["process"] == {"title": "full_name"}


def test_compiled_pipeline_for_disallowed_bundle_is_400(client):
    _save_articles(client)

    response = client.get("/api/importers/p1/pipelines/page")

    assert response.status_code == 400
    assert response.json()["detail"]["offending_id"] == "page"


def test_mapping_change_is_visible_in_next_compile(client):
    _save_articles(client)
    client.get("/api/importers/p1/pipelines/article")

    client.put("/api/importers/p1/field-mappings", json={
        "name": "headline",
        "destination": "title",
        "importer_bundle": "article",
        "processing": [{"plugin_id": "trim"}],
    })
    body = client.get("/api/importers/p1/pipelines/article").json()

    assert body["process"]["title"] == [{"plugin": "trim", "source": "headline"}]


def test_plan_with_unresolvable_dependency_is_409(client):
    _save_articles(client)
    client.put("/api/importers/p1/field-mappings", json={
        "name": "author",
        "destination": "uid",
        "importer_bundle": "article",
        "processing": [{"plugin_id": LOOKUP_PLUGIN_ID, "settings": {"migration": "entity_import:gone:page"}}],
    })

    response = client.get("/api/importers/p1/plan")

    assert response.status_code == 409


def test_plan_lists_status_labels(client):
    _save_articles(client)

    body = client.get("/api/importers/p1/plan").json()

    assert body["bundle"] == "article"
    assert body["pipelines"] == [
        {"id": "entity_import:p1:article", "label": "Articles: article", "status": "idle", "status_label": "Idle"},
    ]


def test_page_import_and_rollback(client, tmp_path):
    _save_articles(client)
    csv_path = tmp_path / "articles.csv"
    csv_path.write_text("full_name\nHello\n", encoding="utf-8")
    file_id = client.post("/api/files", json={"uri": str(csv_path)}).json()["id"]

    imported = client.post("/api/importers/p1/import", json={
        "bundle": "article",
        "migrations": {"entity_import:p1:article": {"configuration": {"file_id": [file_id]}}},
    }).json()
    rolled_back = client.post("/api/importers/p1/actions", json={"bundle": "article", "action": "rollback"}).json()

    assert imported["success"]
    assert imported["runs"][0]["records_created"] == 1
    assert rolled_back["message"] == "The system successfully executed rollback for 1 migrations."
    assert rolled_back["runs"][0]["records_deleted"] == 1


def test_page_import_requires_display_page(client):
    _save_articles(client, display_page=False)

    response = client.post("/api/importers/p1/import", json={"bundle": "article"})

    assert response.status_code == 404


def test_import_is_not_an_action(client):
    _save_articles(client)

    response = client.post("/api/importers/p1/actions", json={"action": "import"})

    assert response.status_code == 400


def test_delete_importer_removes_mappings(client, services):
    _save_articles(client)

    assert client.delete("/api/importers/p1").json() == {"status": "deleted"}
    assert services.store.query_field_mappings("p1") == []
    assert client.get("/api/importers/p1").status_code == 404


def test_file_registration(client):
    created = client.post("/api/files", json={"uri": "https://example.com/a.csv"}).json()

    assert created["filename"] == "a.csv"
    assert client.get(f"/api/files/{created['id']}").json()["uri"] == "https://example.com/a.csv"
    assert client.get("/api/files/999").status_code == 404
