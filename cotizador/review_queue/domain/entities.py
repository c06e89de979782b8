from enum import Enum
from typing import Optional
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, Field

from cotizador.core.schemas import UnitType, DeliveryType

# Entités du Domaine "Review Queue"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingReviewRecord(BaseModel):
    """Candidat extrait non retenu, en attente de revue pour entrer au catalogue."""
    id: int
    name: str
    brand: str = ""
    description: str = ""
    suggested_unit: UnitType = UnitType.PIECE
    spec_details: Optional[str] = None
    category: Optional[str] = None
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApprovalForm(BaseModel):
    """Données complétées par le réviseur avant l'entrée au catalogue."""
    net_price: Decimal = Field(Decimal(0), ge=0)
    category: str = Field(..., min_length=1)
    unit: Optional[UnitType] = None
    delivery_type: DeliveryType = DeliveryType.IMMEDIATE
    delivery_days: int = Field(0, ge=0)
