import asyncio
import logging
from typing import List, Tuple, Callable, Awaitable, Optional

from cotizador.core.config import settings
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.domain.entities import DocumentPayload, ExtractionResult
from cotizador.extraction.domain.exceptions import (
    ExtractionBaseException, ExtractionRateLimitedException,
    ExtractionFailure, UnsupportedDocumentException,
)
from cotizador.extraction.infrastructure.image_tools import rasterize_first_page, downscale_image
from cotizador.extraction.utils import parse_extraction_result

logger = logging.getLogger(__name__)

Rasterizer = Callable[[DocumentPayload], DocumentPayload]


def prepare_document(content: bytes, mime_type: str, filename: Optional[str] = None) -> DocumentPayload:
    """Prépare un document téléversé pour l'extraction.

    Les images sont réduites et réencodées en JPEG, les PDF sont conservés tels quels.
    """
    payload = DocumentPayload(content=content, mime_type=(mime_type or "").lower(), filename=filename)
    if payload.is_pdf:
        return payload
    if payload.is_image:
        return downscale_image(payload)
    raise UnsupportedDocumentException(mime_type)


class ExtractionGateway:
    """Soumet un document à une chaîne ordonnée de backends de vision.

    Pour chaque backend, dans l'ordre:
      - un PDF est rastérisé (première page) si le backend n'accepte que les images;
      - chaque appel est borné par `timeout` secondes;
      - un quota dépassé est retenté avec une attente linéaire, jusqu'à `max_attempts`;
      - la sortie est nettoyée puis validée; toute erreur fait passer au backend suivant.
    Si aucun backend ne réussit, ExtractionFailure détaille les raisons par backend.
    """

    def __init__(
        self,
        backends: List[AbstractExtractionBackend],
        timeout: float = None,
        max_attempts: int = None,
        backoff: float = None,
        rasterizer: Rasterizer = rasterize_first_page,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.backends = backends
        self.timeout = timeout if timeout is not None else settings.EXTRACTION_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.EXTRACTION_MAX_ATTEMPTS
        self.backoff = backoff if backoff is not None else settings.EXTRACTION_BACKOFF_SECONDS
        self.rasterizer = rasterizer
        self.sleep = sleep

    async def extract(self, payload: DocumentPayload) -> ExtractionResult:
        if not (payload.is_pdf or payload.is_image):
            raise UnsupportedDocumentException(payload.mime_type)

        attempts: List[Tuple[str, str]] = []
        rasterized: Optional[DocumentPayload] = None

        for backend in self.backends:
            submitted = payload
            if not backend.accepts(payload.mime_type):
                if not payload.is_pdf:
                    attempts.append((backend.name, f"format {payload.mime_type} non accepté"))
                    continue
                if rasterized is None:
                    try:
                        rasterized = self.rasterizer(payload)
                    except ExtractionBaseException as e:
                        attempts.append((backend.name, e.message))
                        continue
                submitted = rasterized

            try:
                result = await self._call_with_retry(backend, submitted)
            except ExtractionBaseException as e:
                logger.warning(f"[ExtractionGateway] Backend '{backend.name}' en échec: {e.message}")
                attempts.append((backend.name, e.message))
                continue
            except asyncio.TimeoutError:
                logger.warning(f"[ExtractionGateway] Backend '{backend.name}' hors délai ({self.timeout}s).")
                attempts.append((backend.name, f"délai dépassé ({self.timeout}s)"))
                continue

            logger.info(
                f"[ExtractionGateway] Extraction réussie via '{backend.name}': "
                f"{len(result.products)} produit(s), multiples={result.multiple_models_found}"
            )
            return result

        logger.error(f"[ExtractionGateway] Tous les backends ont échoué: {attempts}")
        raise ExtractionFailure(attempts)

    async def _call_with_retry(self, backend: AbstractExtractionBackend, payload: DocumentPayload) -> ExtractionResult:
        attempt = 1
        while True:
            try:
                raw = await asyncio.wait_for(backend.extract(payload), timeout=self.timeout)
            except ExtractionRateLimitedException:
                if attempt >= self.max_attempts:
                    raise
                delay = self.backoff * attempt
                logger.info(
                    f"[ExtractionGateway] Quota '{backend.name}' dépassé, tentative {attempt}/{self.max_attempts}, "
                    f"nouvel essai dans {delay}s."
                )
                await self.sleep(delay)
                attempt += 1
                continue
            logger.debug(f"[ExtractionGateway] Réponse brute '{backend.name}': {raw[:500]}")
            return parse_extraction_result(raw)
