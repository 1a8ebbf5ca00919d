from setkeeper.api.collection import router as collection_router
from setkeeper.api.health import router as health_router
from setkeeper.api.sets import router as sets_router

__all__ = [
    "collection_router",
    "health_router",
    "sets_router",
]
