"""
Knowledge Sync - keeps vector stores and agents in step with content.

This module provides:
1. Formatting: Turn text, Q&A, catalog and website content into documents
2. Indexing: One OpenAI vector store per knowledge source
3. Orchestration: Upload, attach, persist, re-point agents, in that order
4. Migration: Idempotent backfill of existing sources

Usage:
    from app.features.knowledge import get_orchestrator

    result = await get_orchestrator().on_content_created(source_id, item)
"""

from app.features.knowledge.models import (
    Agent,
    AgentSyncReport,
    CatalogContent,
    ContentItem,
    ContentType,
    KnowledgeSource,
    MigrationReport,
    Product,
    QAContent,
    SourceDeletionResult,
    SourceMigrationResult,
    SyncResult,
    TextContent,
    WebsiteContent,
)
from app.features.knowledge.chunking import ChunkingProfile, profile_for
from app.features.knowledge.formatter import format_content, document_filename
from app.features.knowledge.file_store import RemoteFileStore
from app.features.knowledge.vector_index import VectorIndexManager
from app.features.knowledge.agent_sync import AgentSynchronizer
from app.features.knowledge.orchestrator import KnowledgeSyncOrchestrator, get_orchestrator
from app.features.knowledge.migration import MigrationRunner

__all__ = [
    # Models
    "Agent",
    "AgentSyncReport",
    "CatalogContent",
    "ContentItem",
    "ContentType",
    "KnowledgeSource",
    "MigrationReport",
    "Product",
    "QAContent",
    "SourceDeletionResult",
    "SourceMigrationResult",
    "SyncResult",
    "TextContent",
    "WebsiteContent",
    # Components
    "ChunkingProfile",
    "profile_for",
    "format_content",
    "document_filename",
    "RemoteFileStore",
    "VectorIndexManager",
    "AgentSynchronizer",
    "KnowledgeSyncOrchestrator",
    "get_orchestrator",
    "MigrationRunner",
]
