import logging
from typing import Optional

import httpx

from cotizador.core.config import settings
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.extraction.domain.exceptions import ExtractionBackendException, ExtractionRateLimitedException
from cotizador.extraction.domain import prompt_templates

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096


class GroqExtractionBackend(AbstractExtractionBackend):
    """Backend Groq (API compatible OpenAI, modèle de vision). Images uniquement."""

    name = "groq"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.GROQ_API_KEY
        self.model = model or settings.GROQ_MODEL
        self.api_url = api_url or settings.GROQ_API_URL
        self.http_client = http_client

    def accepts(self, mime_type: str) -> bool:
        return mime_type.startswith("image/")

    def _build_body(self, payload: DocumentPayload) -> dict:
        prompt = prompt_templates.extraction_prompt.format(
            company=settings.COMPANY_NAME, default_brand=settings.DEFAULT_BRAND
        )
        data_url = f"data:{payload.mime_type};base64,{payload.base64}"
        return {
            "model": self.model,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }],
            "temperature": 0,
            "max_tokens": MAX_TOKENS,
            "response_format": {"type": "json_object"},
        }

    async def extract(self, payload: DocumentPayload) -> str:
        if not self.api_key:
            raise ExtractionBackendException("GROQ_API_KEY non configurée.")

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        logger.debug(f"[Groq] Envoi de '{payload.filename}' au modèle {self.model}")
        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.api_url, json=self._build_body(payload), headers=headers)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(self.api_url, json=self._build_body(payload), headers=headers)
        except httpx.HTTPError as e:
            raise ExtractionBackendException(f"Erreur réseau Groq: {e}", e) from e

        if response.status_code == 429:
            raise ExtractionRateLimitedException(self.name)
        if response.status_code >= 400:
            raise ExtractionBackendException(f"Groq HTTP {response.status_code}: {response.text[:200]}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractionBackendException("Réponse Groq sans contenu.", e) from e
        if not content:
            raise ExtractionBackendException("Réponse Groq vide.")
        return content
