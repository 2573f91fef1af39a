# tests/test_language_packs_api.py


def upsert(client, headers, language, key, value, namespace="common"):
    return client.post(
        "/api/admin/language-packs",
        json={"languageCode": language, "namespace": namespace, "key": key, "value": value},
        headers=headers,
    )


def test_upsert_creates_then_bumps_version(client, admin_headers):
    created = upsert(client, admin_headers, "ko", "cart.title", "장바구니")
    assert created.status_code == 200, created.text
    assert created.json()["version"] == 1

    updated = upsert(client, admin_headers, "ko", "cart.title", "내 장바구니")
    assert updated.json()["id"] == created.json()["id"]
    assert updated.json()["version"] == 2
    assert client.app.state.events.recent_events(1)[0]["type"] == "language-pack-update"


def test_public_map_falls_back_to_default_language(client, admin_headers):
    upsert(client, admin_headers, "ko", "cart.title", "장바구니")
    upsert(client, admin_headers, "ko", "home.title", "홈")
    upsert(client, admin_headers, "en", "home.title", "Home")

    body = client.get("/api/language-packs", params={"language": "en"}).json()

    assert body["translations"] == {"cart.title": "장바구니", "home.title": "Home"}


def test_unknown_language_is_rejected(client, admin_headers):
    assert upsert(client, admin_headers, "xx", "a", "b").status_code == 400


def test_update_and_delete(client, admin_headers):
    entry = upsert(client, admin_headers, "en", "home.title", "Home").json()

    updated = client.put(f"/api/admin/language-packs/{entry['id']}", json={"value": "Main"}, headers=admin_headers)
    assert updated.json()["value"] == "Main"

    assert client.delete(f"/api/admin/language-packs/{entry['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/admin/language-packs/{entry['id']}", headers=admin_headers).status_code == 404


def test_auto_translate_fills_missing_keys(client, admin_headers, fake_translator):
    upsert(client, admin_headers, "ko", "cart.title", "장바구니")
    upsert(client, admin_headers, "ko", "home.title", "홈")
    upsert(client, admin_headers, "en", "home.title", "Home")

    response = client.post(
        "/api/admin/language-packs/auto-translate", json={"targetLanguage": "en"}, headers=admin_headers
    )

    assert response.status_code == 200, response.text
    assert response.json()["keys"] == ["cart.title"]
    assert fake_translator.calls == [(["장바구니"], "en", "ko")]
    translations = client.get("/api/language-packs", params={"language": "en"}).json()["translations"]
    assert translations == {"cart.title": "[en] 장바구니", "home.title": "Home"}


def test_translate_without_api_key_is_rejected(client, admin_headers):
    response = client.post("/api/admin/i18n/translate", json={"text": "안녕하세요", "target": "en"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_translate_with_translator(client, admin_headers, fake_translator):
    response = client.post("/api/admin/i18n/translate", json={"text": "안녕하세요", "target": "ja"}, headers=admin_headers)

    assert response.json()["translated"] == "[ja] 안녕하세요"
