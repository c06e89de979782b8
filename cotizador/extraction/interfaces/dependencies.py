import logging
from functools import lru_cache
from typing import Annotated, List

from fastapi import Depends

from cotizador.core.config import settings
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.infrastructure.gemini_client import GeminiExtractionBackend
from cotizador.extraction.infrastructure.groq_client import GroqExtractionBackend
from cotizador.extraction.infrastructure.ollama_client import OllamaExtractionBackend
from cotizador.extraction.application.services import ExtractionGateway

logger = logging.getLogger(__name__)

BACKEND_FACTORIES = {
    "gemini": GeminiExtractionBackend,
    "groq": GroqExtractionBackend,
    "ollama": OllamaExtractionBackend,
}


@lru_cache()
def get_extraction_backends() -> List[AbstractExtractionBackend]:
    """Construit la chaîne de backends dans l'ordre configuré (EXTRACTION_BACKENDS)."""
    backends = []
    for name in settings.EXTRACTION_BACKENDS:
        factory = BACKEND_FACTORIES.get(name.lower())
        if factory is None:
            logger.warning(f"Backend d'extraction inconnu ignoré: '{name}'")
            continue
        backends.append(factory())
    logger.info(f"Chaîne d'extraction: {[b.name for b in backends]}")
    return backends


def get_extraction_gateway() -> ExtractionGateway:
    logger.debug("Fourniture de ExtractionGateway")
    return ExtractionGateway(backends=get_extraction_backends())


ExtractionGatewayDep = Annotated[ExtractionGateway, Depends(get_extraction_gateway)]
