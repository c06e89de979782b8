import base64
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cotizador.core.schemas import UnitType

# Entités du Domaine "Extraction"

PDF_MIME_TYPE = "application/pdf"


class DocumentPayload(BaseModel):
    """Document soumis à l'extraction (image ou PDF), contenu brut."""
    content: bytes
    mime_type: str
    filename: Optional[str] = None

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


class ExtractedCandidate(BaseModel):
    """Produit détecté par un backend de vision, pas encore chiffré."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    brand: str = ""
    description: str = ""
    suggested_unit: UnitType = Field(UnitType.PIECE, alias="suggestedUnit")
    spec_details: Optional[str] = Field(None, alias="specDetails")
    category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Le nom du produit ne peut pas être vide")
        return value

    @field_validator("brand", "description", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @field_validator("spec_details", "category", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ExtractionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    multiple_models_found: bool = Field(..., alias="multipleModelsFound")
    products: List[ExtractedCandidate]
