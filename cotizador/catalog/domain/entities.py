from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cotizador.core.schemas import UnitType, DeliveryType
from cotizador.quotes.domain.entities import LineItem

# Entités du Domaine "Catalog"


class CatalogEntry(BaseModel):
    """Fiche produit persistée. Le nom est la clé de réconciliation, le SKU est immuable."""
    id: int
    name: str
    brand: str = ""
    description: str = ""
    unit: UnitType = UnitType.PIECE
    net_price: Decimal = Field(Decimal(0), ge=0)
    delivery_type: DeliveryType = DeliveryType.IMMEDIATE
    delivery_days: int = Field(0, ge=0)
    category: Optional[str] = None
    sku: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CatalogEntryUpdate(BaseModel):
    """Champs modifiables d'une fiche catalogue (le SKU n'en fait pas partie)."""
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[UnitType] = None
    net_price: Optional[Decimal] = Field(None, ge=0)
    delivery_type: Optional[DeliveryType] = None
    delivery_days: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class Category(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ReconciliationWarning(BaseModel):
    """Échec non bloquant sur une ligne: elle poursuit sans SKU."""
    item_id: str
    item_name: str
    message: str


class ReconciliationReport(BaseModel):
    items: List[LineItem] = []
    warnings: List[ReconciliationWarning] = []
    created: int = 0
