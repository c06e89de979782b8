from enum import Enum

# ======================================================
# Énumérations partagées entre devis, catalogue et extraction
# ======================================================

class UnitType(str, Enum):
    """Unité de vente d'un article."""
    PIECE = "u"
    METER = "m"
    KILOGRAM = "kg"
    CENTIMETER = "cm"


class DeliveryType(str, Enum):
    IMMEDIATE = "immediate"
    IMPORT = "import"


UNIT_LABELS = {
    UnitType.PIECE: "Unid.",
    UnitType.METER: "Mts",
    UnitType.KILOGRAM: "Kg",
    UnitType.CENTIMETER: "cm",
}
