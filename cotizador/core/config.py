import logging
from typing import Optional, List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()


class Settings(BaseSettings):
    # --- Base de Données ---
    # DATABASE_URL prend le pas sur les variables POSTGRES_* si défini
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "cotizador"
    POSTGRES_USER: str = "cotizador"
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Extraction IA ---
    # Ordre de la chaîne de fallback (noms des backends)
    EXTRACTION_BACKENDS: List[str] = ["gemini", "groq", "ollama"]
    EXTRACTION_TIMEOUT_SECONDS: float = 60.0
    EXTRACTION_MAX_ATTEMPTS: int = 3
    EXTRACTION_BACKOFF_SECONDS: float = 2.0
    IMAGE_MAX_DIMENSION: int = 1200
    PDF_RASTER_RESOLUTION: int = 150

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"

    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_VISION_MODEL: str = "llava"

    # --- Métier ---
    DEFAULT_BRAND: str = "INPROTAR"
    DEFAULT_CATEGORY: str = "Sin Categoría"
    CATALOG_SEARCH_LIMIT: int = 20
    QUOTE_SESSION_IDLE_MINUTES: int = 240

    # --- Document PDF ---
    COMPANY_NAME: str = "INPROTAR"
    COMPANY_TAGLINE: str = "Soluciones Eléctricas e Industriales"
    SALES_EXECUTIVE: str = "Enzo Tardones"
    SALES_EMAIL: str = "ventas@inprotar.cl"
    SALES_PHONE: str = "+56 9 0000 0000"
    COMPANY_WEBSITE: str = "www.inprotar.cl"
    COMPANY_LEGAL_NAME: str = ""
    COMPANY_RUT: str = ""
    COMPANY_ADDRESS: str = ""
    QUOTE_VALIDITY_DAYS: int = 15

    # --- Auth (stub) ---
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: Optional[str] = None

    # --- CORS ---
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore' # Ignorer les variables d'env non définies dans le modèle

    @property
    def database_url(self) -> str:
        """URL SQLAlchemy async (asyncpg par défaut)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()

# --- Validation des secrets (log seulement, l'application démarre quand même) ---
if settings.DATABASE_URL is None and settings.POSTGRES_PASSWORD is None:
    logger.critical("Ni DATABASE_URL ni POSTGRES_PASSWORD ne sont définis!")

if not settings.GEMINI_API_KEY and not settings.GROQ_API_KEY:
    logger.warning("Aucune clé GEMINI_API_KEY / GROQ_API_KEY: seule l'extraction locale (Ollama) sera disponible.")

if settings.ADMIN_PASSWORD is None:
    logger.warning("ADMIN_PASSWORD non défini: la connexion sera refusée.")

logger.info(f"Configuration chargée: DB={settings.POSTGRES_DB}@{settings.POSTGRES_HOST}, backends={settings.EXTRACTION_BACKENDS}")
