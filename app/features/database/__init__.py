"""
Database Feature Module - Organized Data Access Layer

Usage:
    from app.features.database import get_database_client

    repo = get_database_client().knowledge
    source = repo.get_source(source_id)
"""

from app.features.database.client import DatabaseClient, get_database_client

__all__ = [
    "DatabaseClient",
    "get_database_client",
]
