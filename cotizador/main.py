"""
Module principal de l'application FastAPI Cotizador.

Configure le logging, CORS, la création des tables au démarrage et inclut
les routeurs: devis (sessions et historique), catalogue, file de revue IA
et connexion.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cotizador import __version__
from cotizador.core.config import settings
from cotizador.core.database import create_tables

# --- Importer les routeurs ---
from cotizador.auth.router import auth_router
from cotizador.quotes.interfaces.api import quote_router
from cotizador.catalog.interfaces.api import catalog_router
from cotizador.review_queue.interfaces.api import review_router

# Configurer le logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Démarrage: création des tables si nécessaire...")
    await create_tables()
    yield
    logger.info("Arrêt de l'application.")


app = FastAPI(
    title="Cotizador API",
    description="API de cotisation: saisie guidée, extraction IA de fiches techniques, catalogue et PDF.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Reconciliation-Warnings", "X-Saved-Quote-Id", "X-Persistence-Error"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentification"])
app.include_router(quote_router, prefix="/api/v1/quotes", tags=["Quotes"])
app.include_router(catalog_router, prefix="/api/v1/catalog", tags=["Catalog"])
app.include_router(review_router, prefix="/api/v1/review-queue", tags=["Review Queue"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "version": __version__}
