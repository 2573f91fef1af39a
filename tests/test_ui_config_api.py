# tests/test_ui_config_api.py

import json
import os

from storefront.config import settings


def sections_document(language):
    with open(os.path.join(settings.I18N_DIR, language, "sections.json"), encoding="utf-8") as f:
        return json.load(f)


def create_section(client, headers, key, order):
    response = client.post(
        "/api/admin/ui-sections", json={"key": key, "type": "banner", "order": order}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_section_order_updates_files_and_database(client, admin_headers):
    create_section(client, admin_headers, "hero", 0)
    create_section(client, admin_headers, "best", 1)

    response = client.put(
        "/api/admin/ui-config/sections/order", json={"sectionOrder": ["best", "hero"]}, headers=admin_headers
    )

    assert response.status_code == 200, response.text
    assert set(response.json()["updatedLanguages"]) == {"ko", "en", "ja"}
    for language in ("ko", "en", "ja"):
        assert sections_document(language)["sectionOrder"] == ["best", "hero"]
    admin_listing = client.get("/api/admin/ui-sections", headers=admin_headers).json()
    assert [s["key"] for s in admin_listing] == ["best", "hero"]


def test_partial_failure_returns_207(client, admin_headers):
    path = os.path.join(settings.I18N_DIR, "ja", "sections.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("not json")

    response = client.put(
        "/api/admin/ui-config/sections/order", json={"sectionOrder": ["hero"]}, headers=admin_headers
    )

    assert response.status_code == 207
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["language"] == "ja"


def test_visibility_hides_section(client, admin_headers):
    create_section(client, admin_headers, "hero", 0)

    response = client.patch(
        "/api/admin/ui-config/sections/hero/visibility", json={"visible": False}, headers=admin_headers
    )

    assert response.status_code == 200, response.text
    assert sections_document("en")["sections"]["hero"]["visible"] is False
    assert client.get("/api/ui-sections").json()["sectionsCount"] == 0


def test_full_sync_and_status(client, admin_headers):
    create_section(client, admin_headers, "hero", 0)

    assert client.post("/api/admin/ui-config/sync", headers=admin_headers).status_code == 200

    status = client.get("/api/admin/ui-config/status", headers=admin_headers).json()
    assert status["fileSystem"]["valid"] is True
    assert status["status"]["pendingChanges"] == 0
    assert status["status"]["lastSync"]
