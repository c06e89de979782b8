"""
Tests pour les backends HTTP (Gemini, Groq) et le backend Ollama, sans réseau.
"""
import json
import pytest
import httpx
from unittest.mock import AsyncMock

from cotizador.extraction.domain.entities import DocumentPayload, PDF_MIME_TYPE
from cotizador.extraction.domain.exceptions import ExtractionBackendException, ExtractionRateLimitedException
from cotizador.extraction.infrastructure.gemini_client import GeminiExtractionBackend
from cotizador.extraction.infrastructure.groq_client import GroqExtractionBackend
from cotizador.extraction.infrastructure.ollama_client import OllamaExtractionBackend

OUTPUT = '{"multipleModelsFound": false, "products": []}'


def client_returning(status_code: int, body, captured: list = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        if isinstance(body, (dict, list)):
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, text=body)
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def image_payload() -> DocumentPayload:
    return DocumentPayload(content=b"img", mime_type="image/jpeg", filename="foto.jpg")

# --- Gemini ---

@pytest.mark.asyncio
async def test_gemini_returns_text_and_sends_inline_document():
    captured = []
    body = {"candidates": [{"content": {"parts": [{"text": OUTPUT}]}}]}
    backend = GeminiExtractionBackend(
        api_key="k", model="gemini-test", base_url="https://gemini.test/v1beta",
        http_client=client_returning(200, body, captured),
    )
    payload = DocumentPayload(content=b"%PDF", mime_type=PDF_MIME_TYPE, filename="ficha.pdf")

    assert await backend.extract(payload) == OUTPUT

    request = captured[0]
    assert str(request.url) == "https://gemini.test/v1beta/models/gemini-test:generateContent"
    assert request.headers["x-goog-api-key"] == "k"
    sent = json.loads(request.content)
    inline = sent["contents"][0]["parts"][0]["inline_data"]
    assert inline["mime_type"] == PDF_MIME_TYPE
    assert inline["data"] == payload.base64
    assert sent["generationConfig"]["temperature"] == 0


def test_gemini_accepts_pdf_and_images():
    backend = GeminiExtractionBackend(api_key="k")
    assert backend.accepts(PDF_MIME_TYPE)
    assert backend.accepts("image/png")
    assert not backend.accepts("text/plain")


@pytest.mark.asyncio
async def test_gemini_rate_limited():
    backend = GeminiExtractionBackend(api_key="k", http_client=client_returning(429, "quota"))
    with pytest.raises(ExtractionRateLimitedException):
        await backend.extract(image_payload())


@pytest.mark.asyncio
async def test_gemini_http_error():
    backend = GeminiExtractionBackend(api_key="k", http_client=client_returning(500, "boom"))
    with pytest.raises(ExtractionBackendException) as exc_info:
        await backend.extract(image_payload())
    assert not isinstance(exc_info.value, ExtractionRateLimitedException)


@pytest.mark.asyncio
async def test_gemini_without_key():
    backend = GeminiExtractionBackend(api_key="k", http_client=client_returning(200, {}))
    backend.api_key = None
    with pytest.raises(ExtractionBackendException):
        await backend.extract(image_payload())


@pytest.mark.asyncio
async def test_gemini_empty_candidates():
    backend = GeminiExtractionBackend(api_key="k", http_client=client_returning(200, {"candidates": []}))
    with pytest.raises(ExtractionBackendException):
        await backend.extract(image_payload())

# --- Groq ---

@pytest.mark.asyncio
async def test_groq_returns_message_content():
    captured = []
    body = {"choices": [{"message": {"content": OUTPUT}}]}
    backend = GroqExtractionBackend(
        api_key="g", model="vision-test", api_url="https://groq.test/chat/completions",
        http_client=client_returning(200, body, captured),
    )

    assert await backend.extract(image_payload()) == OUTPUT

    sent = json.loads(captured[0].content)
    assert captured[0].headers["authorization"] == "Bearer g"
    assert sent["model"] == "vision-test"
    image_part = sent["messages"][0]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_groq_accepts_images_only():
    backend = GroqExtractionBackend(api_key="g")
    assert backend.accepts("image/jpeg")
    assert not backend.accepts(PDF_MIME_TYPE)


@pytest.mark.asyncio
async def test_groq_rate_limited():
    backend = GroqExtractionBackend(api_key="g", http_client=client_returning(429, "slow down"))
    with pytest.raises(ExtractionRateLimitedException):
        await backend.extract(image_payload())

# --- Ollama ---

@pytest.mark.asyncio
async def test_ollama_passes_image_to_llm():
    llm = AsyncMock()
    llm.ainvoke.return_value = f"  {OUTPUT}\n"
    backend = OllamaExtractionBackend(model_name="llava", base_url="http://ollama.test", llm=llm)

    assert await backend.extract(image_payload()) == OUTPUT
    _, kwargs = llm.ainvoke.call_args
    assert kwargs["images"] == [image_payload().base64]


@pytest.mark.asyncio
async def test_ollama_error_is_wrapped():
    llm = AsyncMock()
    llm.ainvoke.side_effect = ConnectionError("refused")
    backend = OllamaExtractionBackend(model_name="llava", base_url="http://ollama.test", llm=llm)

    with pytest.raises(ExtractionBackendException):
        await backend.extract(image_payload())
