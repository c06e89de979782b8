import logging
from typing import Optional, List, Dict, Any

from cotizador.storage.domain.store import AbstractRecordStore, QUOTES
from cotizador.quotes.domain.entities import SavedQuote, LineItem, QuoteInfo

logger = logging.getLogger(__name__)


class SavedQuoteRepository:
    """Historique des devis finalisés (collection "quotes").

    L'instantané complet (lignes, informations client, total) est stocké dans
    la colonne JSON `products_data`; les colonnes plates servent à l'affichage.
    """

    def __init__(self, store: AbstractRecordStore):
        self.store = store

    @staticmethod
    def _to_entity(record: Dict[str, Any]) -> SavedQuote:
        snapshot = record.get("products_data") or {}
        info = QuoteInfo.model_validate(snapshot.get("info") or {"quote_number": record["quote_number"]})
        return SavedQuote(
            id=record["id"],
            quote_number=record["quote_number"],
            customer_name=record.get("customer_name") or "",
            customer_company=record.get("customer_company") or "",
            customer_rut=record.get("customer_rut") or "",
            customer_email=record.get("customer_email") or "",
            issue_date=snapshot.get("date") or info.issue_date,
            products=[LineItem.model_validate(p) for p in snapshot.get("products", [])],
            info=info,
            total_net=record.get("total_net") or 0,
            total_tax=record.get("total_tax") or 0,
            total=snapshot.get("total", record.get("total_final") or 0),
        )

    async def add(self, products: List[LineItem], info: QuoteInfo, net_total, tax, total) -> SavedQuote:
        snapshot = {
            "products": [p.model_dump(mode="json") for p in products],
            "info": info.model_dump(mode="json"),
            "total": str(total),
            "date": info.issue_date.isoformat(),
            "quote_number": info.quote_number,
        }
        record = await self.store.insert(QUOTES, {
            "quote_number": info.quote_number,
            "customer_name": info.customer_name,
            "customer_company": info.customer_company,
            "customer_rut": info.customer_rut,
            "customer_email": info.customer_email,
            "total_net": net_total,
            "total_tax": tax,
            "total_final": total,
            "products_data": snapshot,
        })
        logger.info(f"Devis {info.quote_number} enregistré dans l'historique (ID {record['id']}).")
        return self._to_entity(record)

    async def get_by_id(self, quote_id: int) -> Optional[SavedQuote]:
        record = await self.store.find_one(QUOTES, {"id": quote_id})
        return self._to_entity(record) if record else None

    async def list_all(self) -> List[SavedQuote]:
        records = await self.store.list_all(QUOTES, order_by="id", descending=True)
        return [self._to_entity(r) for r in records]

    async def delete(self, quote_id: int) -> bool:
        return await self.store.delete(QUOTES, quote_id)
