"""
Utilitaires pour le module Extraction.
"""
import json
import re

from pydantic import ValidationError

from cotizador.extraction.domain.entities import ExtractionResult
from cotizador.extraction.domain.exceptions import ExtractionParsingException

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def clean_json_output(raw: str) -> str:
    """
    Nettoie la sortie d'un modèle pour n'en garder que l'objet JSON.

    Retire les blocs de code markdown, un marqueur "json" en tête et tout
    texte hors de l'accolade ouvrante la plus à gauche et de l'accolade
    fermante la plus à droite.

    Args:
        raw: La sortie brute du modèle

    Returns:
        str: Le texte JSON candidat (éventuellement vide)
    """
    text = _FENCE_RE.sub("", raw or "").strip()
    if text[:4].lower() == "json":
        text = text[4:].strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start:end + 1]


def parse_extraction_result(raw: str) -> ExtractionResult:
    """
    Décode et valide la sortie d'un backend.

    Raises:
        ExtractionParsingException: JSON invalide ou non conforme au schéma
    """
    cleaned = clean_json_output(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionParsingException(f"JSON invalide: {e.msg}", raw_output=raw) from e
    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise ExtractionParsingException(
            f"Réponse non conforme au schéma ({e.error_count()} erreurs)", raw_output=raw
        ) from e
