import logging
from typing import Optional

from langchain_community.llms import Ollama

from cotizador.core.config import settings
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.extraction.domain.exceptions import ExtractionBackendException
from cotizador.extraction.domain import prompt_templates

logger = logging.getLogger(__name__)


class OllamaExtractionBackend(AbstractExtractionBackend):
    """Backend local via Ollama (modèle de vision type llava). Images uniquement."""

    name = "ollama"

    def __init__(self, model_name: Optional[str] = None, base_url: Optional[str] = None, llm: Optional[Ollama] = None):
        self.model_name = model_name or settings.OLLAMA_VISION_MODEL
        self.base_url = base_url or settings.OLLAMA_BASE_URL
        self.llm_instance = llm or Ollama(
            model=self.model_name,
            base_url=self.base_url,
            temperature=0,
            format="json",
        )
        logger.info(f"Ollama '{self.model_name}' configuré depuis {self.base_url}")

    def accepts(self, mime_type: str) -> bool:
        return mime_type.startswith("image/")

    async def extract(self, payload: DocumentPayload) -> str:
        prompt = prompt_templates.extraction_prompt.format(
            company=settings.COMPANY_NAME, default_brand=settings.DEFAULT_BRAND
        )
        try:
            logger.debug(f"Invocation asynchrone du modèle Ollama ({self.model_name})...")
            response = await self.llm_instance.ainvoke(prompt, images=[payload.base64])
        except Exception as e:
            logger.error(f"Erreur lors de l'invocation Ollama ({self.model_name}): {e}", exc_info=True)
            raise ExtractionBackendException(f"Erreur communication avec Ollama: {e}", e) from e
        text = response.strip() if isinstance(response, str) else str(response).strip()
        if not text:
            raise ExtractionBackendException("Réponse Ollama vide.")
        return text
