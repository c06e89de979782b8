import random
import re
import uuid
from typing import Optional, List
from decimal import Decimal
from datetime import date

from pydantic import BaseModel, Field, model_validator

from cotizador.core.schemas import UnitType, DeliveryType

# Entités du Domaine "Quotes"

IVA_RATE = Decimal("0.19")
QUOTE_NUMBER_PREFIX = "COT-"
REQUIRED_INFO_FIELDS = ("customer_company", "customer_rut", "customer_name", "customer_email")


def new_line_item_id() -> str:
    """Identifiant local à la session, jamais réutilisé."""
    return uuid.uuid4().hex


def generate_quote_number(previous: Optional[str] = None) -> str:
    """Numéro lisible "COT-XXXX" (4 chiffres), différent du précédent si fourni.

    Aucune unicité globale n'est garantie.
    """
    while True:
        number = f"{QUOTE_NUMBER_PREFIX}{random.randint(1000, 9999)}"
        if number != previous:
            return number


def format_rut(value: str) -> str:
    """Formate un RUT chilien: "123456785" -> "12.345.678-5"."""
    clean = re.sub(r"[^0-9K]", "", (value or "").upper())
    if not clean:
        return ""
    body, check_digit = clean[:-1], clean[-1]
    if not body:
        return check_digit
    groups = []
    while body:
        groups.insert(0, body[-3:])
        body = body[:-3]
    return ".".join(groups) + "-" + check_digit


class LineItem(BaseModel):
    """Une ligne de devis (produit chiffré)."""
    id: str = Field(default_factory=new_line_item_id)
    name: str = ""
    brand: str = ""
    description: str = ""
    quantity: int = Field(1, ge=0)
    unit: UnitType = UnitType.PIECE
    net_price: Decimal = Field(Decimal(0), ge=0, description="Prix unitaire HT")
    delivery_type: DeliveryType = DeliveryType.IMMEDIATE
    delivery_days: int = Field(0, ge=0)
    category: Optional[str] = None
    sku: Optional[str] = None

    @model_validator(mode="after")
    def _zero_days_when_immediate(self) -> "LineItem":
        # delivery_days n'a de sens que pour l'importation
        if self.delivery_type == DeliveryType.IMMEDIATE and self.delivery_days != 0:
            self.delivery_days = 0
        return self

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.net_price


class QuoteInfo(BaseModel):
    """Données client et métadonnées du document."""
    customer_name: str = ""
    customer_company: str = ""
    customer_rut: str = ""
    customer_giro: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    quote_number: str = Field(default_factory=generate_quote_number)
    issue_date: date = Field(default_factory=date.today)
    iva_rate: Decimal = IVA_RATE

    @classmethod
    def new(cls, previous_number: Optional[str] = None) -> "QuoteInfo":
        """Valeurs par défaut d'un nouveau devis (nouveau numéro, date du jour)."""
        return cls(quote_number=generate_quote_number(previous_number), issue_date=date.today())

    def missing_required_fields(self) -> List[str]:
        return [field for field in REQUIRED_INFO_FIELDS if not str(getattr(self, field) or "").strip()]


class SavedQuote(BaseModel):
    """Instantané persisté d'un devis finalisé."""
    id: int
    quote_number: str
    customer_name: str = ""
    customer_company: str = ""
    customer_rut: str = ""
    customer_email: str = ""
    issue_date: date
    products: List[LineItem] = []
    info: QuoteInfo
    total_net: Decimal = Decimal(0)
    total_tax: Decimal = Decimal(0)
    total: Decimal

    class Config:
        from_attributes = True
