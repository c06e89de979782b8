"""
Utilitaires de formatage pour le document de devis.
"""
from decimal import Decimal, ROUND_HALF_UP

from cotizador.core.schemas import DeliveryType
from cotizador.quotes.domain.entities import LineItem


def format_clp(amount: Decimal) -> str:
    """
    Formate un montant en pesos chiliens: séparateur de milliers ".", sans décimales.

    Args:
        amount: Le montant

    Returns:
        str: Ex. "$1.234.567"
    """
    rounded = Decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(int(rounded)):,}".replace(",", ".")


def delivery_label(item: LineItem) -> str:
    if item.delivery_type == DeliveryType.IMPORT:
        return f"Importación {item.delivery_days} días"
    return "Inmediata"
