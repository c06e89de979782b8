import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cotizador.core.database import get_db_session
from cotizador.storage.domain.store import AbstractRecordStore
from cotizador.storage.infrastructure.sqlalchemy_store import SQLAlchemyRecordStore

logger = logging.getLogger(__name__)


def get_record_store(db: AsyncSession = Depends(get_db_session)) -> AbstractRecordStore:
    """Injecte SQLAlchemyRecordStore."""
    logger.debug("Fourniture de SQLAlchemyRecordStore")
    return SQLAlchemyRecordStore(session=db)

RecordStoreDep = Annotated[AbstractRecordStore, Depends(get_record_store)]
