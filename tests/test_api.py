"""
Tests des routes HTTP (FastAPI) avec DB SQLite en mémoire, extraction et PDF simulés.
"""
import pytest
from urllib.parse import unquote

from cotizador.core.config import settings

from tests.conftest import ScriptedBackend

THREE_CANDIDATES = """{"multipleModelsFound": true, "products": [
    {"name": "Interruptor 1P 10A"}, {"name": "Interruptor 1P 16A"}, {"name": "Interruptor 1P 20A"}
]}"""

CUSTOMER = {
    "customer_company": "Constructora Andes",
    "customer_rut": "761234567",
    "customer_name": "Ana Pérez",
    "customer_email": "ana@andes.cl",
}


async def new_session(client) -> str:
    response = await client.post("/api/v1/quotes/sessions")
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_health(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_step_one_requires_customer_fields(test_client):
    session_id = await new_session(test_client)

    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/steps/next")
    assert response.status_code == 422
    assert "customer_rut" in response.json()["detail"]["missing_fields"]

    await test_client.patch(f"/api/v1/quotes/sessions/{session_id}/info", json=CUSTOMER)
    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/steps/next")
    assert response.status_code == 200
    assert response.json()["step"] == 2


@pytest.mark.asyncio
async def test_unknown_session(test_client):
    response = await test_client.get("/api/v1/quotes/sessions/inconnue")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_items_and_totals(test_client):
    session_id = await new_session(test_client)
    base = f"/api/v1/quotes/sessions/{session_id}"

    first = (await test_client.post(f"{base}/items", json={"name": "A", "quantity": 2, "net_price": "1000"})).json()
    await test_client.post(f"{base}/items", json={"name": "B", "quantity": 1, "net_price": "500"})

    body = (await test_client.get(base)).json()
    assert body["step"] == 3
    assert float(body["net_total"]) == 2500
    assert float(body["tax"]) == 475
    assert float(body["total"]) == 2975

    body = (await test_client.patch(f"{base}/items/{first['id']}", json={"quantity": 0})).json()
    assert float(body["net_total"]) == 500

    body = (await test_client.delete(f"{base}/items/{first['id']}")).json()
    assert [i["name"] for i in body["items"]] == ["B"]


@pytest.mark.asyncio
async def test_jump_to_invalid_step(test_client):
    session_id = await new_session(test_client)
    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/steps/9")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_unsupported_document(test_client):
    session_id = await new_session(test_client)
    response = await test_client.post(
        f"/api/v1/quotes/sessions/{session_id}/documents",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 415


@pytest.mark.asyncio
async def test_extract_without_document(test_client):
    session_id = await new_session(test_client)
    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/extractions")
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("api_backends", [[ScriptedBackend("fake", [THREE_CANDIDATES])]])
async def test_extraction_selection_and_review_queue(test_client, api_backends):
    session_id = await new_session(test_client)
    base = f"/api/v1/quotes/sessions/{session_id}"

    response = await test_client.post(f"{base}/documents", files={"file": ("ficha.pdf", b"%PDF-1.4", "application/pdf")})
    assert response.status_code == 200
    assert response.json()["staged_document"] == "ficha.pdf"

    response = await test_client.post(f"{base}/extractions")
    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "selection_required"
    assert len(body["selection"]["candidates"]) == 3

    response = await test_client.post(f"{base}/selection/select", json={"indices": [0, 2]})
    assert [i["name"] for i in response.json()] == ["Interruptor 1P 10A", "Interruptor 1P 20A"]

    response = await test_client.post(f"{base}/selection/queue")
    assert [r["name"] for r in response.json()] == ["Interruptor 1P 16A"]

    pending = (await test_client.get("/api/v1/review-queue")).json()
    assert [p["name"] for p in pending] == ["Interruptor 1P 16A"]

    response = await test_client.post(
        f"/api/v1/review-queue/{pending[0]['id']}/approve", json={"net_price": "3990", "category": "Protecciones"}
    )
    assert response.status_code == 201
    assert response.json()["sku"] == "INP-PRO-0001"

    response = await test_client.post(f"/api/v1/review-queue/{pending[0]['id']}/reject")
    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("api_backends", [[ScriptedBackend("fake", ["rien d'exploitable"])]])
async def test_extraction_failure_keeps_document(test_client, api_backends):
    session_id = await new_session(test_client)
    base = f"/api/v1/quotes/sessions/{session_id}"
    await test_client.post(f"{base}/documents", files={"file": ("ficha.pdf", b"%PDF-1.4", "application/pdf")})

    response = await test_client.post(f"{base}/extractions")

    assert response.status_code == 502
    assert response.json()["detail"]["attempts"][0]["backend"] == "fake"
    assert (await test_client.get(base)).json()["staged_document"] == "ficha.pdf"


@pytest.mark.asyncio
async def test_finalize_returns_pdf_and_saves_history(test_client):
    session_id = await new_session(test_client)
    base = f"/api/v1/quotes/sessions/{session_id}"
    await test_client.patch(f"{base}/info", json=CUSTOMER)
    await test_client.post(f"{base}/items", json={"name": "Cable THHN 12 AWG", "quantity": 2, "net_price": "1000"})

    response = await test_client.post(f"{base}/finalize")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert response.headers["x-reconciliation-warnings"] == "0"
    saved_id = int(response.headers["x-saved-quote-id"])

    history = (await test_client.get("/api/v1/quotes/history")).json()
    assert [q["id"] for q in history] == [saved_id]
    assert history[0]["products"][0]["sku"] == "INP-SIN-0001"

    session = (await test_client.get(base)).json()
    assert session["step"] == 5
    assert session["items"][0]["sku"] == "INP-SIN-0001"


@pytest.mark.asyncio
async def test_finalize_empty_quote(test_client):
    session_id = await new_session(test_client)
    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/finalize")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_finalize_without_customer_info(test_client):
    session_id = await new_session(test_client)
    base = f"/api/v1/quotes/sessions/{session_id}"
    await test_client.post(f"{base}/items", json={"name": "Cable", "net_price": "100"})

    response = await test_client.post(f"{base}/finalize")

    assert response.status_code == 422
    assert "customer_email" in response.json()["detail"]["missing_fields"]
    assert (await test_client.get("/api/v1/quotes/history")).json() == []
    assert (await test_client.get(base)).json()["step"] == 3


@pytest.mark.asyncio
async def test_reopen_saved_quote(test_client):
    first_id = await new_session(test_client)
    await test_client.patch(f"/api/v1/quotes/sessions/{first_id}/info", json=CUSTOMER)
    await test_client.post(f"/api/v1/quotes/sessions/{first_id}/items/manual", json={"name": "Tablero a medida"})
    response = await test_client.post(f"/api/v1/quotes/sessions/{first_id}/finalize")
    saved_id = int(response.headers["x-saved-quote-id"])

    second_id = await new_session(test_client)
    response = await test_client.post(f"/api/v1/quotes/sessions/{second_id}/open/{saved_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["step"] == 3
    assert body["info"]["customer_company"] == "Constructora Andes"
    assert [i["name"] for i in body["items"]] == ["Tablero a medida"]


@pytest.mark.asyncio
async def test_catalog_pick_and_categories(test_client):
    response = await test_client.post("/api/v1/catalog/categories", json={"name": "Iluminación"})
    assert response.status_code == 201
    assert (await test_client.post("/api/v1/catalog/categories", json={"name": "Iluminación"})).status_code == 409

    session_id = await new_session(test_client)
    await test_client.patch(f"/api/v1/quotes/sessions/{session_id}/info", json=CUSTOMER)
    await test_client.post(
        f"/api/v1/quotes/sessions/{session_id}/items", json={"name": "Foco LED 50W", "net_price": "9990"}
    )
    await test_client.post(f"/api/v1/quotes/sessions/{session_id}/finalize")

    results = (await test_client.get("/api/v1/catalog/products", params={"q": "foco"})).json()
    assert [r["name"] for r in results] == ["Foco LED 50W"]

    other_id = await new_session(test_client)
    response = await test_client.post(f"/api/v1/catalog/products/{results[0]['id']}/pick/{other_id}")
    assert response.status_code == 201
    assert response.json()["sku"] == results[0]["sku"]

    response = await test_client.patch(f"/api/v1/catalog/products/{results[0]['id']}", json={"net_price": "8990"})
    assert response.status_code == 200
    assert float(response.json()["net_price"]) == 8990


@pytest.mark.asyncio
async def test_persistence_error_is_reported_in_headers(test_client, monkeypatch):
    from cotizador.quotes.infrastructure.persistence import SavedQuoteRepository
    from cotizador.storage.domain.exceptions import StoreOperationException

    async def failing_add(self, *args, **kwargs):
        raise StoreOperationException("base indisponible")

    monkeypatch.setattr(SavedQuoteRepository, "add", failing_add)
    session_id = await new_session(test_client)
    await test_client.patch(f"/api/v1/quotes/sessions/{session_id}/info", json=CUSTOMER)
    await test_client.post(f"/api/v1/quotes/sessions/{session_id}/items", json={"name": "Cable", "net_price": "100"})

    response = await test_client.post(f"/api/v1/quotes/sessions/{session_id}/finalize")

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert "x-saved-quote-id" not in response.headers
    assert "base indisponible" in unquote(response.headers["x-persistence-error"])


@pytest.mark.asyncio
async def test_login(test_client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "s3cret")

    ok = await test_client.post("/api/v1/auth/login", json={"username": "admin", "password": "s3cret"})
    assert ok.status_code == 200
    assert ok.json() == {"authenticated": True, "username": "admin"}

    ko = await test_client.post("/api/v1/auth/login", json={"username": "admin", "password": "nope"})
    assert ko.status_code == 401


@pytest.mark.asyncio
async def test_login_refused_without_configured_password(test_client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", None)
    response = await test_client.post("/api/v1/auth/login", json={"username": "admin", "password": ""})
    assert response.status_code == 401
