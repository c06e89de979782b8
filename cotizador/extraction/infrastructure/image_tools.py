import logging
from io import BytesIO

import pdfplumber
from PIL import Image, UnidentifiedImageError

from cotizador.core.config import settings
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.extraction.domain.exceptions import DocumentConversionException

logger = logging.getLogger(__name__)

JPEG_QUALITY = 80


def rasterize_first_page(payload: DocumentPayload, resolution: int = None) -> DocumentPayload:
    """Rend la première page d'un PDF en PNG (pour les backends image seulement)."""
    resolution = resolution or settings.PDF_RASTER_RESOLUTION
    try:
        with pdfplumber.open(BytesIO(payload.content)) as pdf:
            if not pdf.pages:
                raise DocumentConversionException("Le PDF ne contient aucune page.")
            image = pdf.pages[0].to_image(resolution=resolution).original
            buffer = BytesIO()
            image.save(buffer, format="PNG")
    except DocumentConversionException:
        raise
    except Exception as e:
        logger.error(f"Échec rastérisation PDF '{payload.filename}': {e}", exc_info=True)
        raise DocumentConversionException(f"Impossible de convertir le PDF en image: {e}", e) from e

    stem = (payload.filename or "document").rsplit(".", 1)[0]
    logger.debug(f"PDF '{payload.filename}' rastérisé ({image.width}x{image.height} @ {resolution} dpi).")
    return DocumentPayload(content=buffer.getvalue(), mime_type="image/png", filename=f"{stem}.png")


def downscale_image(payload: DocumentPayload, max_dimension: int = None) -> DocumentPayload:
    """Réduit l'image à `max_dimension` px (plus grand côté) et la réencode en JPEG qualité 80."""
    max_dimension = max_dimension or settings.IMAGE_MAX_DIMENSION
    try:
        with Image.open(BytesIO(payload.content)) as image:
            image = image.convert("RGB")
            image.thumbnail((max_dimension, max_dimension), Image.LANCZOS)
            buffer = BytesIO()
            image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError) as e:
        raise DocumentConversionException(f"Image illisible: {e}", e) from e

    stem = (payload.filename or "image").rsplit(".", 1)[0]
    return DocumentPayload(content=buffer.getvalue(), mime_type="image/jpeg", filename=f"{stem}.jpg")
