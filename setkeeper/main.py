import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from setkeeper.api import collection_router, health_router, sets_router
from setkeeper.config import settings
from setkeeper.db.database import async_session_factory, init_db
from setkeeper.models.failure import KnownError, create_unknown_failure, finalize_response
from setkeeper.reconcile.reconciler import SetReconciler
from setkeeper.services.collection_store import CollectionStore
from setkeeper.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    async with ScryfallClient() as client:
        app.state.reconciler = SetReconciler(client)
        app.state.collection_store = CollectionStore(async_session_factory)
        await app.state.collection_store.load()
        yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("setkeeper"),
    lifespan=lifespan,
)

app.include_router(collection_router)
app.include_router(health_router)
app.include_router(sets_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures through the response envelope."""
    response = finalize_response(exc.to_response())
    return JSONResponse(status_code=exc.status_code, content=response.model_dump(mode="json"))


@app.exception_handler(Exception)
async def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Render anything unclassified as an unknown failure."""
    logger.exception("Unhandled error: %s", exc)
    response = create_unknown_failure(exc)
    return JSONResponse(status_code=500, content=response.model_dump(mode="json"))
