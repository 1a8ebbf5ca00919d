"""
Shared service instances for request handlers.

The reconciler and collection store live on ``app.state`` for the lifetime
of the process, so the per-set card cache survives across requests.
"""

from fastapi import Request

from setkeeper.reconcile.reconciler import SetReconciler
from setkeeper.services.collection_store import CollectionStore


def get_reconciler(request: Request) -> SetReconciler:
    """Dependency that provides the process-wide set reconciler."""
    reconciler: SetReconciler = request.app.state.reconciler
    return reconciler


def get_collection_store(request: Request) -> CollectionStore:
    """Dependency that provides the process-wide collection store."""
    store: CollectionStore = request.app.state.collection_store
    return store
