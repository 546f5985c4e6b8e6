from functools import lru_cache

from app.features.database import get_database_client
from app.features.database.repositories import KnowledgeRepository
from app.features.knowledge import KnowledgeSyncOrchestrator, MigrationRunner, get_orchestrator


def get_repository() -> KnowledgeRepository:
    """Provide the knowledge repository for request handlers."""
    return get_database_client().knowledge


def get_sync_orchestrator() -> KnowledgeSyncOrchestrator:
    """Provide the singleton sync orchestrator for request handlers."""
    return get_orchestrator()


@lru_cache(maxsize=1)
def get_migration_runner() -> MigrationRunner:
    """Provide a singleton migration runner sharing the orchestrator."""
    return MigrationRunner(orchestrator=get_orchestrator())
