from decimal import Decimal

from cotizador.core.config import settings
from cotizador.core.schemas import DeliveryType
from cotizador.extraction.domain.entities import ExtractedCandidate
from cotizador.quotes.domain.entities import LineItem


def promote_candidate(candidate: ExtractedCandidate, default_brand: str = None) -> LineItem:
    """Transforme un candidat extrait en ligne de devis (prix à saisir, livraison immédiate)."""
    name = candidate.name
    if candidate.spec_details:
        name = f"{name} ({candidate.spec_details})"
    return LineItem(
        name=name,
        brand=candidate.brand or default_brand or settings.DEFAULT_BRAND,
        description=candidate.description,
        quantity=1,
        unit=candidate.suggested_unit,
        net_price=Decimal(0),
        delivery_type=DeliveryType.IMMEDIATE,
        delivery_days=0,
        category=candidate.category,
    )
