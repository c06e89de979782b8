# Standard Library

from typing import AsyncGenerator, List

# Third-Party Libraries
import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries (Your project)
from cotizador.main import app
from cotizador.core.database import get_db_session
from cotizador.storage import models  # noqa: F401
from cotizador.storage.infrastructure.sqlalchemy_store import SQLAlchemyRecordStore
from cotizador.catalog.infrastructure.persistence import CatalogRepository, CategoryRepository
from cotizador.review_queue.infrastructure.persistence import PendingProductRepository
from cotizador.review_queue.application.services import PendingReviewService
from cotizador.quotes.infrastructure.persistence import SavedQuoteRepository
from cotizador.quotes.application.workspace import WorkspaceRegistry
from cotizador.quotes.interfaces.dependencies import get_workspace_registry
from cotizador.extraction.application.services import ExtractionGateway
from cotizador.extraction.domain.backend_interface import AbstractExtractionBackend
from cotizador.extraction.domain.entities import DocumentPayload
from cotizador.extraction.interfaces.dependencies import get_extraction_gateway
from cotizador.pdf.domain.generator import AbstractQuoteDocumentRenderer
from cotizador.pdf.domain.exceptions import PDFGenerationException
from cotizador.pdf.interfaces.dependencies import get_quote_renderer

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite://"

# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine SQLite en mémoire partagé (StaticPool) avec toutes les tables créées."""
    engine: AsyncEngine = create_async_engine(
        TEST_DATABASE_BASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Fournit une session DB en mémoire pour chaque test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def record_store(db_session: AsyncSession) -> SQLAlchemyRecordStore:
    return SQLAlchemyRecordStore(session=db_session)


@pytest.fixture
def catalog_repo(record_store) -> CatalogRepository:
    return CatalogRepository(store=record_store)


@pytest.fixture
def category_repo(record_store) -> CategoryRepository:
    return CategoryRepository(store=record_store)


@pytest.fixture
def pending_repo(record_store) -> PendingProductRepository:
    return PendingProductRepository(store=record_store)


@pytest.fixture
def saved_quote_repo(record_store) -> SavedQuoteRepository:
    return SavedQuoteRepository(store=record_store)


@pytest.fixture
def review_service(pending_repo, catalog_repo, category_repo) -> PendingReviewService:
    return PendingReviewService(pending_repo=pending_repo, catalog_repo=catalog_repo, category_repo=category_repo)

# --- Fixtures Extraction ---

class ScriptedBackend(AbstractExtractionBackend):
    """Backend simulé: renvoie (ou lève) successivement les éléments de `script`."""

    def __init__(self, name: str, script: List, image_only: bool = False):
        self.name = name
        self.script = list(script)
        self.image_only = image_only
        self.calls: List[DocumentPayload] = []

    def accepts(self, mime_type: str) -> bool:
        if self.image_only:
            return mime_type.startswith("image/")
        return True

    async def extract(self, payload: DocumentPayload) -> str:
        self.calls.append(payload)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def scripted_backend():
    return ScriptedBackend


async def no_sleep(delay: float):
    return None


@pytest.fixture
def recorded_sleep():
    """Remplace asyncio.sleep: enregistre les délais demandés sans attendre."""
    delays = []

    async def _sleep(delay: float):
        delays.append(delay)

    _sleep.delays = delays
    return _sleep

# --- Fixtures PDF ---

class MockQuoteRenderer(AbstractQuoteDocumentRenderer):
    """Un rendu PDF simulé pour les tests."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def render_quote_document(self, line_items, info) -> bytes:
        self.calls.append((list(line_items), info))
        if self.fail:
            raise PDFGenerationException("Mock quote generation failed intentionally.")
        return f"%PDF-mock {info.quote_number} {len(line_items)}".encode("utf-8")


@pytest.fixture
def mock_renderer() -> MockQuoteRenderer:
    return MockQuoteRenderer()

# --- Client HTTP ---

@pytest.fixture
def workspace_registry() -> WorkspaceRegistry:
    return WorkspaceRegistry()


@pytest.fixture
def api_backends() -> List[AbstractExtractionBackend]:
    """Chaîne d'extraction utilisée par l'API de test (à remplacer dans un test si besoin)."""
    return [ScriptedBackend("fake", ['{"multipleModelsFound": false, "products": []}'])]


@pytest_asyncio.fixture(scope="function")
async def test_client(
    db_session: AsyncSession,
    workspace_registry: WorkspaceRegistry,
    api_backends: List[AbstractExtractionBackend],
    mock_renderer: MockQuoteRenderer,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient httpx: DB de test isolée, sessions en mémoire propres, extraction et PDF simulés."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    def override_get_extraction_gateway() -> ExtractionGateway:
        return ExtractionGateway(backends=api_backends, timeout=5, max_attempts=1, backoff=0, sleep=no_sleep)

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_workspace_registry] = lambda: workspace_registry
    app.dependency_overrides[get_extraction_gateway] = override_get_extraction_gateway
    app.dependency_overrides[get_quote_renderer] = lambda: mock_renderer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
