"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from ziptag.config import get_settings
from ziptag.database import SessionLocal, init_db
from ziptag.routers import entries, zip_lookup
from ziptag.schemas import CollectionEvent
from ziptag.services.entry_collector import EntryCollector
from ziptag.services.entry_store import SqlCollectionStore
from ziptag.services.geo_catalog import load_catalog
from ziptag.services.zip_resolver import ZipResolver

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("ziptag")


def log_collection_event(event: CollectionEvent) -> None:
    logger.debug("Collection %s: %d entries affected, %d total", event.kind, len(event.entries), event.total)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting up %s...", settings.app_name)

    catalog = load_catalog(str(settings.catalog_path))
    app.state.resolver = ZipResolver(catalog)

    init_db()
    collector = EntryCollector(SqlCollectionStore(SessionLocal), settings.collection_name)
    unsubscribe = collector.subscribe(log_collection_event)
    count = collector.load()
    app.state.collector = collector
    logger.info("Catalog ready %s; %d saved entries", catalog.sizes(), count)

    yield

    # Shutdown
    logger.info("Shutting down...")
    unsubscribe()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    debug=settings.debug,
    description="API for California ZIP lookups and case-tagged ZIP entries",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    zip_lookup.router,
    prefix="/zip",
    tags=["ZIP Lookup"]
)
app.include_router(
    entries.router,
    prefix="/entries",
    tags=["Entries"]
)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Report catalog sizes and the number of saved entries."""
    return {
        "status": "healthy",
        "name": settings.app_name,
        "version": settings.app_version,
        "catalog": app.state.resolver.catalog.sizes(),
        "entries": len(app.state.collector),
    }
