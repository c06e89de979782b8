from typing import Optional, List
from decimal import Decimal
from datetime import date

from pydantic import BaseModel, Field

from cotizador.core.schemas import UnitType, DeliveryType
from cotizador.extraction.domain.entities import ExtractedCandidate
from cotizador.quotes.domain.entities import LineItem, QuoteInfo
from cotizador.quotes.application.workspace import QuoteWorkspace
from cotizador.triage.application.services import TriageDecision, TriageOutcome, TriageSelection

# --- Schémas d'entrée ---

class QuoteInfoUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_company: Optional[str] = None
    customer_rut: Optional[str] = None
    customer_giro: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    issue_date: Optional[date] = None


class LineItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    brand: str = ""
    description: str = ""
    quantity: int = Field(1, ge=0)
    unit: UnitType = UnitType.PIECE
    net_price: Decimal = Field(Decimal(0), ge=0)
    delivery_type: DeliveryType = DeliveryType.IMMEDIATE
    delivery_days: int = Field(0, ge=0)
    category: Optional[str] = None
    sku: Optional[str] = None


class LineItemUpdate(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit: Optional[UnitType] = None
    net_price: Optional[Decimal] = Field(None, ge=0)
    delivery_type: Optional[DeliveryType] = None
    delivery_days: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class ManualItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""


class SelectionRequest(BaseModel):
    indices: List[int] = Field(..., min_length=1)

# --- Schémas de sortie ---

class SelectionResponse(BaseModel):
    candidates: List[ExtractedCandidate]
    selected: List[int]
    remaining: int

    @classmethod
    def from_selection(cls, selection: TriageSelection) -> "SelectionResponse":
        return cls(
            candidates=selection.candidates,
            selected=sorted(selection.selected),
            remaining=len(selection.remaining),
        )


class QuoteSessionResponse(BaseModel):
    id: str
    step: int
    info: QuoteInfo
    items: List[LineItem]
    net_total: Decimal
    tax: Decimal
    total: Decimal
    missing_info_fields: List[str]
    staged_document: Optional[str] = None
    selection: Optional[SelectionResponse] = None

    @classmethod
    def from_workspace(cls, workspace: QuoteWorkspace) -> "QuoteSessionResponse":
        session = workspace.session
        staged = workspace.staged_document
        selection = workspace.selection
        return cls(
            id=workspace.id,
            step=int(session.step),
            info=session.info,
            items=session.items,
            net_total=session.net_total,
            tax=session.tax,
            total=session.total,
            missing_info_fields=session.info.missing_required_fields(),
            staged_document=(staged.filename or staged.mime_type) if staged else None,
            selection=SelectionResponse.from_selection(selection) if selection and not selection.is_resolved else None,
        )


class TriageResponse(BaseModel):
    outcome: TriageOutcome
    added_items: List[LineItem] = []
    selection: Optional[SelectionResponse] = None
    session: QuoteSessionResponse

    @classmethod
    def from_decision(cls, decision: TriageDecision, workspace: QuoteWorkspace) -> "TriageResponse":
        return cls(
            outcome=decision.outcome,
            added_items=decision.added_items,
            selection=SelectionResponse.from_selection(decision.selection) if decision.selection else None,
            session=QuoteSessionResponse.from_workspace(workspace),
        )
