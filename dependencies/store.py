# dependencies/store.py

from functools import lru_cache

from core.config import settings
from core.errors import StoreError
from core.logging_config import logger
from core.store import DataStore, InMemoryDataStore, SupabaseDataStore
from core.supabase_client import get_supabase_client


@lru_cache(maxsize=1)
def get_data_store() -> DataStore:
    """
    Process-wide store selected by DATA_STORE_BACKEND.
    Tests override this dependency with their own InMemoryDataStore.
    """
    if settings.DATA_STORE_BACKEND == "supabase":
        client = get_supabase_client()
        if client is None:
            raise StoreError("Supabase client not configured")
        logger.info("Using Supabase data store")
        return SupabaseDataStore(client)

    logger.info("Using in-memory data store")
    return InMemoryDataStore()
