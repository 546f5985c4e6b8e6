"""Database Repositories - Organized data access."""

from app.features.database.repositories.knowledge import KnowledgeRepository

__all__ = [
    "KnowledgeRepository",
]
