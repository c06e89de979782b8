from typing import Optional, Dict, Any
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# Tables persistées. Chaque "collection" du record store correspond à une table.


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CategoryDB(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=100)
    created_at: datetime = Field(default_factory=_utcnow)


class ProductDB(SQLModel, table=True):
    """Fiche catalogue (CatalogEntry). Le nom est la clé de réconciliation."""
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=255)
    brand: str = Field(default="", max_length=100)
    description: str = Field(default="")
    unit: str = Field(default="u", max_length=10)
    net_price: Decimal = Field(default=Decimal(0), max_digits=14, decimal_places=2)
    delivery_type: str = Field(default="immediate", max_length=20)
    delivery_days: int = Field(default=0)
    category: Optional[str] = Field(default=None, index=True, max_length=100)
    sku: Optional[str] = Field(default=None, unique=True, max_length=50)
    created_at: datetime = Field(default_factory=_utcnow)


class PendingProductDB(SQLModel, table=True):
    __tablename__ = "pending_products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    brand: str = Field(default="", max_length=100)
    description: str = Field(default="")
    suggested_unit: str = Field(default="u", max_length=10)
    spec_details: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default="pending", index=True, max_length=20)
    created_at: datetime = Field(default_factory=_utcnow)


class QuoteDB(SQLModel, table=True):
    """Historique des devis finalisés."""
    __tablename__ = "quotes"

    id: Optional[int] = Field(default=None, primary_key=True)
    quote_number: str = Field(index=True, max_length=20)
    customer_name: str = Field(default="", max_length=255)
    customer_company: str = Field(default="", max_length=255)
    customer_rut: str = Field(default="", max_length=20)
    customer_email: str = Field(default="", max_length=255)
    total_net: Decimal = Field(default=Decimal(0), max_digits=16, decimal_places=2)
    total_tax: Decimal = Field(default=Decimal(0), max_digits=16, decimal_places=2)
    total_final: Decimal = Field(default=Decimal(0), max_digits=16, decimal_places=2)
    # Instantané complet: {"products": [...], "info": {...}, "total": "...", "date": "...", "quote_number": "..."}
    products_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=_utcnow)


class SkuSequenceDB(SQLModel, table=True):
    """Compteur atomique par couple (marque, catégorie)."""
    __tablename__ = "sku_sequences"

    key: str = Field(primary_key=True, max_length=20)
    last_value: int = Field(default=0)
