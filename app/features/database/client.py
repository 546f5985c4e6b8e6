"""
Database Client - Unified Access to Data Repositories

Thin wrapper that hands out the Supabase-backed repositories.
"""

import logging
from functools import lru_cache
from typing import Optional

from app.core.database import get_supabase
from app.features.database.repositories.knowledge import KnowledgeRepository

logger = logging.getLogger("LinkAI.Database")


class DatabaseClient:
    """
    Unified database client providing access to all repositories.

    Usage:
        db = get_database_client()
        source = db.knowledge.get_source(source_id)
        db.knowledge.set_file_id(ContentType.CATALOG, item_id, file_id)
    """

    _instance: Optional["DatabaseClient"] = None

    def __init__(self, client=None):
        """Initialize database client with all repositories."""
        self._client = client if client is not None else get_supabase()

        self.knowledge = KnowledgeRepository(self._client)

        logger.info("Database client initialized with all repositories")

    @property
    def client(self):
        """Direct access to Supabase client for advanced queries."""
        return self._client

    def table(self, name: str):
        """Direct table access for one-off queries."""
        return self._client.table(name)


@lru_cache(maxsize=1)
def get_database_client() -> DatabaseClient:
    """Get the singleton database client."""
    if DatabaseClient._instance is None:
        DatabaseClient._instance = DatabaseClient()
    return DatabaseClient._instance
