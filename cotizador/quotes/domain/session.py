import logging
from enum import IntEnum
from typing import Optional, List, Set, Any
from decimal import Decimal

from cotizador.quotes.domain.entities import LineItem, QuoteInfo, new_line_item_id

logger = logging.getLogger(__name__)


class QuoteStep(IntEnum):
    CUSTOMER_INFO = 1
    ITEM_SELECTION = 2
    ADJUSTMENT = 3
    REVIEW = 4
    FINALIZE = 5


class QuoteSession:
    """État en mémoire d'un devis en cours de saisie.

    Les mutations sont synchrones. Les totaux ne sont jamais stockés:
    ils sont recalculés à chaque lecture à partir des lignes courantes.
    La navigation entre étapes n'est pas gardée ici (voir QuoteWorkflowService
    pour la validation des informations client).
    """

    def __init__(self, info: Optional[QuoteInfo] = None):
        self.step: QuoteStep = QuoteStep.CUSTOMER_INFO
        self.info: QuoteInfo = info or QuoteInfo.new()
        self.items: List[LineItem] = []
        self.is_finalizing: bool = False
        self._used_ids: Set[str] = set()

    # --- Navigation ---

    def advance(self) -> QuoteStep:
        if self.step < QuoteStep.FINALIZE:
            self.step = QuoteStep(self.step + 1)
        return self.step

    def retreat(self) -> QuoteStep:
        if self.step > QuoteStep.CUSTOMER_INFO:
            self.step = QuoteStep(self.step - 1)
        return self.step

    def jump_to(self, step: int) -> QuoteStep:
        """Saut direct vers une étape (sans contrôle de progression)."""
        try:
            self.step = QuoteStep(step)
        except ValueError:
            raise ValueError(f"Étape invalide: {step} (attendu: 1 à 5)")
        return self.step

    # --- Lignes ---

    def _claim_id(self, item: LineItem) -> LineItem:
        if item.id in self._used_ids:
            item = item.model_copy(update={"id": new_line_item_id()})
        self._used_ids.add(item.id)
        return item

    def add_item(self, item: LineItem) -> LineItem:
        """Ajoute une ligne en fin de liste. Un id déjà utilisé est remplacé."""
        item = self._claim_id(item)
        self.items.append(item)
        logger.debug(f"[QuoteSession] Ligne ajoutée '{item.name}' ({item.id}), {len(self.items)} lignes.")
        return item

    def get_item(self, item_id: str) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def update_item(self, item_id: str, **fields: Any) -> Optional[LineItem]:
        """Mise à jour partielle. Sans effet (retourne None) si l'id est absent."""
        fields.pop("id", None)
        for index, item in enumerate(self.items):
            if item.id == item_id:
                updated = LineItem.model_validate({**item.model_dump(), **fields})
                self.items[index] = updated
                return updated
        logger.debug(f"[QuoteSession] update_item: id {item_id} absent, ignoré.")
        return None

    def remove_item(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        return len(self.items) != before

    def replace_all(self, items: List[LineItem]):
        """Remplace toutes les lignes (réouverture d'un devis sauvegardé, réconciliation).

        Une ligne déjà présente garde son id. Toute autre ligne passe par add_item.
        """
        current_ids = {item.id for item in self.items}
        self.items = []
        for item in items:
            if item.id in current_ids:
                current_ids.discard(item.id)
                self.items.append(item)
            else:
                self.add_item(item)

    # --- Informations client ---

    def set_info(self, info: QuoteInfo):
        self.info = info

    def update_info(self, **fields: Any) -> QuoteInfo:
        self.info = QuoteInfo.model_validate({**self.info.model_dump(), **fields})
        return self.info

    def reset(self):
        """Nouveau devis: lignes vidées, nouveau numéro, retour à l'étape 1."""
        previous_number = self.info.quote_number
        self.items = []
        self.info = QuoteInfo.new(previous_number)
        self.step = QuoteStep.CUSTOMER_INFO
        logger.info(f"[QuoteSession] Session réinitialisée ({previous_number} -> {self.info.quote_number}).")

    # --- Totaux (dérivés) ---

    @property
    def net_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal(0))

    @property
    def tax(self) -> Decimal:
        return self.net_total * self.info.iva_rate

    @property
    def total(self) -> Decimal:
        return self.net_total + self.tax
