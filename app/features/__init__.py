"""
Features Module - Self-contained feature units.

Each feature is a modular unit with its own logic:
- knowledge: Content formatting, vector stores, agent sync and migration
- database: Organized data access repositories
"""

from app.features.database import get_database_client, DatabaseClient

__all__ = [
    "get_database_client",
    "DatabaseClient",
]
