"""
Интеграционные тесты для API endpoints.

Запросы идут через test_client в SQLite in-memory БД с применёнными миграциями.
"""

import pytest

from dokodemo.core.config import settings


# ============================================================================
# ENTRIES
# ============================================================================


@pytest.mark.asyncio
async def test_entry_crud(test_client):
    """Test: POST -> GET -> PATCH -> DELETE."""
    response = await test_client.post(
        "/api/v1/entries",
        json={"title": "Dune", "kind": "book", "tags": ["sci-fi", "favorite"]},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "planned"
    assert created["tags"] == ["favorite", "sci-fi"]
    entry_id = created["id"]

    response = await test_client.get(f"/api/v1/entries/{entry_id}")
    assert response.status_code == 200
    assert response.json()["title"] == "Dune"

    response = await test_client.patch(
        f"/api/v1/entries/{entry_id}", json={"status": "completed", "tags": ["favorite"]}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["tags"] == ["favorite"]
    assert response.json()["updated_at"] >= created["updated_at"]

    response = await test_client.delete(f"/api/v1/entries/{entry_id}")
    assert response.status_code == 204

    response = await test_client.get(f"/api/v1/entries/{entry_id}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_create_entry_unknown_kind(test_client):
    """Test: неизвестный kind -> 400 VALIDATION_ERROR с полем kind."""
    response = await test_client.post("/api/v1/entries", json={"title": "Ep 1", "kind": "podcast"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "kind"

    response = await test_client.get("/api/v1/entries")
    assert response.json() == []


@pytest.mark.asyncio
async def test_create_entry_missing_title(test_client):
    """Test: ошибка формы запроса -> 422 в формате ErrorResponse."""
    response = await test_client.post("/api/v1/entries", json={"kind": "book"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "title"


@pytest.mark.asyncio
async def test_list_entries_filters(test_client):
    """Test: query параметры kind, tag, search, status."""
    await test_client.post("/api/v1/entries", json={"title": "Alpha", "kind": "book", "tags": ["x"]})
    await test_client.post(
        "/api/v1/entries", json={"title": "Beta", "kind": "movie", "tags": ["x", "y"]}
    )

    response = await test_client.get("/api/v1/entries", params={"tag": "x", "search": "bet"})
    assert [e["title"] for e in response.json()] == ["Beta"]

    response = await test_client.get("/api/v1/entries", params={"kind": "book"})
    assert [e["title"] for e in response.json()] == ["Alpha"]

    response = await test_client.get("/api/v1/entries", params={"status": "bogus"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_quick_capture(test_client):
    """Test: POST /quick-capture создаёт note из текста."""
    response = await test_client.post(
        "/api/v1/quick-capture", json={"text": "Доклад https://example.com/talk"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "note"
    assert data["source"] == "quick-capture"
    assert data["url"] == "https://example.com/talk"


# ============================================================================
# CATEGORIES / TAGS
# ============================================================================


@pytest.mark.asyncio
async def test_categories(test_client):
    """Test: 8 seeded категорий, создание новой, 409 на дубликат."""
    response = await test_client.get("/api/v1/categories")
    assert response.status_code == 200
    assert len(response.json()) == 8

    response = await test_client.post("/api/v1/categories", json={"name": "podcast"})
    assert response.status_code == 201
    category_id = response.json()["id"]

    response = await test_client.post("/api/v1/categories", json={"name": "podcast"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_EXISTS"

    response = await test_client.post("/api/v1/entries", json={"title": "Ep 1", "kind": "podcast"})
    assert response.status_code == 201

    response = await test_client.delete(f"/api/v1/categories/{category_id}")
    assert response.status_code == 204

    response = await test_client.get("/api/v1/entries", params={"kind": "podcast"})
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_tags_usage(test_client):
    """Test: GET /tags/usage и удаление тега."""
    await test_client.post("/api/v1/entries", json={"title": "Alpha", "kind": "book", "tags": ["x"]})
    response = await test_client.post("/api/v1/tags", json={"name": "unused"})
    assert response.status_code == 201

    response = await test_client.get("/api/v1/tags/usage")
    assert [(t["name"], t["usage_count"]) for t in response.json()] == [("x", 1), ("unused", 0)]

    tag_id = response.json()[0]["id"]
    assert (await test_client.delete(f"/api/v1/tags/{tag_id}")).status_code == 204
    assert (await test_client.get(f"/api/v1/tags/{tag_id}")).status_code == 404


# ============================================================================
# AUTH / INTEGRATIONS
# ============================================================================


@pytest.mark.asyncio
async def test_api_key_required_when_configured(test_client, monkeypatch):
    """Test: с API_KEY запросы без ключа -> 401, с ключом -> 200."""
    monkeypatch.setattr(settings, "API_KEY", "secret")

    response = await test_client.get("/api/v1/entries")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await test_client.get("/api/v1/entries", headers={"X-API-Key": "wrong"})
    assert response.status_code == 401

    response = await test_client.get("/api/v1/entries", headers={"X-API-Key": "secret"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_api_key_rejects_prefix_and_non_ascii(test_client, monkeypatch):
    """Test: префикс ключа и не-ASCII заголовок -> 401, а не 500."""
    monkeypatch.setattr(settings, "API_KEY", "secret")

    for value in ("secre", "secret-extra", "sécret".encode("utf-8")):
        response = await test_client.get("/api/v1/entries", headers={"X-API-Key": value})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_telegram_webhook(test_client, monkeypatch):
    """Test: 202 для сообщения, 400 без сообщения, 401 с неверным секретом."""
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "tg-secret")
    headers = {"X-Telegram-Bot-Api-Secret-Token": "tg-secret"}
    update = {"update_id": 1, "message": {"text": "Dune", "chat": {"id": 42}}}

    response = await test_client.post(
        "/api/v1/integrations/telegram/update", json=update, headers=headers
    )
    assert response.status_code == 202
    entry_id = response.json()["entry_id"]

    entry = (await test_client.get(f"/api/v1/entries/{entry_id}")).json()
    assert entry["source"] == "telegram:42"

    response = await test_client.post(
        "/api/v1/integrations/telegram/update", json={"update_id": 2}, headers=headers
    )
    assert response.status_code == 400

    response = await test_client.post(
        "/api/v1/integrations/telegram/update",
        json=update,
        headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
    )
    assert response.status_code == 401


# ============================================================================
# HEALTH
# ============================================================================


@pytest.mark.asyncio
async def test_health(test_client):
    """Test: /health показывает версию схемы."""
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected", "schema_revision": "0002"}
