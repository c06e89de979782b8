import logging
from typing import Optional

import httpx

from cotizador.core.config import settings
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.extraction.domain.exceptions import ExtractionBackendException, ExtractionRateLimitedException
from cotizador.extraction.domain import prompt_templates

logger = logging.getLogger(__name__)


class GeminiExtractionBackend(AbstractExtractionBackend):
    """Backend Gemini (API REST generateContent). Accepte images et PDF."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.http_client = http_client

    def accepts(self, mime_type: str) -> bool:
        return mime_type.startswith("image/") or mime_type == "application/pdf"

    def _build_body(self, payload: DocumentPayload) -> dict:
        prompt = prompt_templates.extraction_prompt.format(
            company=settings.COMPANY_NAME, default_brand=settings.DEFAULT_BRAND
        )
        return {
            "contents": [{
                "parts": [
                    {"inline_data": {"mime_type": payload.mime_type, "data": payload.base64}},
                    {"text": prompt},
                ]
            }],
            "generationConfig": {
                "temperature": 0,
                "responseMimeType": "application/json",
                "responseSchema": prompt_templates.EXTRACTION_RESPONSE_SCHEMA,
            },
        }

    async def extract(self, payload: DocumentPayload) -> str:
        if not self.api_key:
            raise ExtractionBackendException("GEMINI_API_KEY non configurée.")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        logger.debug(f"[Gemini] Envoi de '{payload.filename}' ({payload.mime_type}) au modèle {self.model}")
        try:
            if self.http_client is not None:
                response = await self.http_client.post(url, json=self._build_body(payload), headers=headers)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(url, json=self._build_body(payload), headers=headers)
        except httpx.HTTPError as e:
            raise ExtractionBackendException(f"Erreur réseau Gemini: {e}", e) from e

        if response.status_code == 429:
            raise ExtractionRateLimitedException(self.name)
        if response.status_code >= 400:
            raise ExtractionBackendException(f"Gemini HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractionBackendException("Réponse Gemini sans contenu texte.", e) from e
        if not text:
            raise ExtractionBackendException("Réponse Gemini vide.")
        return text
