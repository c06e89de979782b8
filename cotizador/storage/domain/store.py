from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Union

RecordId = Union[int, str]
Record = Dict[str, Any]

# Noms des collections utilisées par l'application
QUOTES = "quotes"
PRODUCTS = "products"
PENDING_PRODUCTS = "pending_products"
CATEGORIES = "categories"


class AbstractRecordStore(ABC):
    """Interface abstraite du stockage persistant orienté enregistrements.

    Chaque opération est atomique à elle seule. Aucune transaction ne couvre
    une séquence "lecture puis écriture" enchaînée par l'appelant.
    """

    @abstractmethod
    async def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Record]:
        """Retourne le premier enregistrement dont les champs égalent `filters`, ou None."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, collection: str, record: Record) -> Record:
        """Insère un enregistrement et le retourne avec son ID.

        Raises:
            DuplicateRecordException: si une contrainte d'unicité est violée.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert_many(self, collection: str, records: List[Record]) -> List[Record]:
        """Insère plusieurs enregistrements dans une seule transaction."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, collection: str, record_id: RecordId, fields: Dict[str, Any]) -> Optional[Record]:
        """Met à jour les champs donnés. Retourne None si l'ID est absent."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, record_id: RecordId) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def list_all(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        raise NotImplementedError

    @abstractmethod
    async def search_text(self, collection: str, fields: List[str], query: str, limit: int = 20) -> List[Record]:
        """Recherche insensible à la casse (sous-chaîne) sur l'un des champs donnés."""
        raise NotImplementedError

    @abstractmethod
    async def next_sku(self, brand: str, category: str) -> str:
        """Génère un SKU unique pour le couple (marque, catégorie).

        Garanti unique même en cas d'appels concurrents pour le même couple.
        """
        raise NotImplementedError
