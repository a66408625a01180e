from __future__ import annotations

from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..geo.spatial_index import InMemorySpatialIndex
from ..restaurants.sync import IndexSyncReconciler
from .document_store import InMemoryDocumentStore
from .seed import seed_store

_store: InMemoryDocumentStore | None = None
_index: InMemorySpatialIndex | None = None


def _load(config: AppConfig, seed: bool) -> None:
    global _store, _index
    store = InMemoryDocumentStore()
    index = InMemorySpatialIndex()
    if seed:
        seed_store(store, config.data_dir)
        # One-time bulk resync of the freshly seeded catalogue.
        IndexSyncReconciler(store, index).sync_all()
    _store, _index = store, index


def get_store(config: AppConfig = DEFAULT_APP_CONFIG) -> InMemoryDocumentStore:
    """Return the process-wide document store, loading it on first call."""
    if _store is None:
        _load(config, seed=config.seed_on_startup)
    return _store


def get_index(config: AppConfig = DEFAULT_APP_CONFIG) -> InMemorySpatialIndex:
    """Return the process-wide spatial index, loading it on first call."""
    if _index is None:
        _load(config, seed=config.seed_on_startup)
    return _index


def reset_state(seed: bool = False, config: AppConfig = DEFAULT_APP_CONFIG) -> None:
    """Replace the store and index with fresh instances."""
    _load(config, seed=seed)
