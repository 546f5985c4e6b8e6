"""
Knowledge Sync Orchestrator - one content mutation, end to end.

For every created or edited content item the steps run strictly in order:

    1. ensure the source's vector store exists
    2. drop the previous file (catalogs always, other types on edit)
    3. format the item into a document
    4. upload it
    5. attach it to the vector store
    6. persist the file handle and bump the source's timestamp
    7. re-point every dependent agent

Steps 1, 4 and a failed previous-file lookup in 2 abort the item. Removing
the previous file is best-effort. Attach and agent failures are recorded on
the result and the flow carries on, so the timestamp still moves and a later
resync converges.
"""

import logging
from functools import lru_cache
from typing import Optional

from app.features.knowledge.agent_sync import AgentSynchronizer
from app.features.knowledge.file_store import RemoteFileStore
from app.features.knowledge.formatter import document_filename, format_content
from app.features.knowledge.models import (
    AgentSyncReport,
    ContentType,
    SourceDeletionResult,
    SyncResult,
)
from app.features.knowledge.vector_index import VectorIndexManager
from app.shared.errors import (
    ContentNotFoundError,
    IndexAttachError,
    KnowledgeSyncError,
    MetadataStoreError,
)

logger = logging.getLogger("LinkAI.Knowledge.Orchestrator")


class KnowledgeSyncOrchestrator:
    """
    Drives formatter -> file store -> vector index -> metadata -> agents.

    Usage:
        orchestrator = get_orchestrator()
        result = await orchestrator.on_content_created(source_id, item)
        if result.warnings:
            ...
    """

    def __init__(
        self,
        repository=None,
        file_store: Optional[RemoteFileStore] = None,
        index_manager: Optional[VectorIndexManager] = None,
        agent_sync: Optional[AgentSynchronizer] = None,
    ):
        self._repository = repository
        self.file_store = file_store or RemoteFileStore()
        self.index_manager = index_manager or VectorIndexManager(repository=repository)
        self.agent_sync = agent_sync or AgentSynchronizer(repository=repository)

    @property
    def repository(self):
        """Lazy-load the knowledge repository."""
        if self._repository is None:
            from app.features.database import get_database_client
            self._repository = get_database_client().knowledge
        return self._repository

    # ==================== TRIGGERS ====================

    async def on_content_created(self, source_id: str, item) -> SyncResult:
        return await self.sync_content(source_id, item, replace_existing=False)

    async def on_content_updated(self, source_id: str, item) -> SyncResult:
        return await self.sync_content(source_id, item, replace_existing=True)

    async def on_content_deleted(
        self,
        source_id: str,
        content_type: ContentType,
        item_id: str,
        file_id: Optional[str] = None,
    ) -> SyncResult:
        return await self.delete_content(source_id, content_type, item_id, file_id=file_id)

    # ==================== SYNC ====================

    async def sync_content(self, source_id: str, item, replace_existing: bool = False) -> SyncResult:
        """
        Synchronize one content item into its source's vector store.

        Args:
            source_id: Owning knowledge source
            item: TextContent, QAContent, CatalogContent or WebsiteContent
            replace_existing: Drop the item's previous file first. Catalogs
                always do this regardless.

        Raises:
            IndexCreationError, FileUploadError, PreviousFileLookupError,
            KnowledgeSourceNotFoundError, MetadataStoreError
        """
        content_type = ContentType(item.content_type)
        result = SyncResult(source_id=source_id, content_type=content_type, item_id=item.id)

        vector_store_id = await self.index_manager.ensure_index(source_id)
        result.vector_store_id = vector_store_id

        if replace_existing or content_type == ContentType.CATALOG:
            await self._remove_previous_file(result, vector_store_id)

        document = format_content(item)
        file_id = await self.file_store.upload(document, document_filename(item))
        result.file_id = file_id

        try:
            await self.index_manager.attach_files(vector_store_id, [file_id], content_type)
            result.attached = True
        except IndexAttachError as e:
            logger.error(f"Attach of {file_id} to {vector_store_id} failed, continuing: {e}")
            result.warnings.append(f"attach failed: {e.message}")

        self.repository.set_file_id(content_type, item.id, file_id)
        self.repository.touch_vector_store(source_id)

        result.agents = await self._sync_agents(source_id, result)

        logger.info(
            f"Synced {content_type.value} content {item.id} of source {source_id} "
            f"as {file_id} ({len(result.warnings)} warnings)"
        )
        return result

    async def _remove_previous_file(self, result: SyncResult, vector_store_id: str) -> None:
        # Raises PreviousFileLookupError; unknown is not the same as none
        previous = self.repository.get_file_id(result.content_type, result.item_id)
        if not previous:
            return

        result.previous_file_id = previous
        detached = await self.index_manager.detach_file(vector_store_id, previous)
        deleted = await self.file_store.delete(previous)
        result.previous_file_removed = detached and deleted
        if not result.previous_file_removed:
            result.warnings.append(f"previous file {previous} not fully removed")

    async def _sync_agents(self, source_id: str, result) -> Optional[AgentSyncReport]:
        try:
            report = await self.agent_sync.sync_agents_for(source_id)
        except KnowledgeSyncError as e:
            logger.error(f"Agent sync for source {source_id} failed: {e}")
            result.warnings.append(f"agent sync failed: {e.message}")
            return None

        for agent_id, error in report.failed.items():
            result.warnings.append(f"agent {agent_id} not updated: {error}")
        return report

    # ==================== DELETE ====================

    async def delete_content(
        self,
        source_id: str,
        content_type: ContentType,
        item_id: str,
        file_id: Optional[str] = None,
    ) -> SyncResult:
        """
        Remove a content item: its file from the index and the provider,
        then its row.

        Remote cleanup is best-effort; the timestamp bump and agent resync
        always happen, even if deleting the row fails. Pass ``file_id`` when
        the item's row is already gone.

        Raises:
            ContentNotFoundError: If the item belongs to another source
        """
        content_type = ContentType(content_type)
        source = self.repository.get_source(source_id)
        result = SyncResult(
            source_id=source_id,
            content_type=content_type,
            item_id=item_id,
            vector_store_id=source.vector_store_id,
        )

        item = None
        try:
            item = self.repository.get_content(content_type, item_id)
        except ContentNotFoundError:
            pass
        except MetadataStoreError as e:
            logger.warning(f"Could not read {content_type.value} content {item_id}: {e}")
            result.warnings.append(f"file lookup failed: {e.message}")
            result.previous_file_removed = False

        if item is not None:
            if item.knowledge_source_id and item.knowledge_source_id != source_id:
                raise ContentNotFoundError(content_type.value, item_id)
            file_id = file_id or item.openai_file_id

        if file_id:
            result.previous_file_id = file_id
            detached = True
            if source.vector_store_id:
                detached = await self.index_manager.detach_file(source.vector_store_id, file_id)
            deleted = await self.file_store.delete(file_id)
            result.previous_file_removed = detached and deleted
            if not result.previous_file_removed:
                result.warnings.append(f"file {file_id} not fully removed")

        try:
            # A surviving row would be re-synced by the next migration run
            self.repository.delete_content(content_type, item_id)
        finally:
            self.repository.touch_vector_store(source_id)
            result.agents = await self._sync_agents(source_id, result)

        logger.info(f"Removed {content_type.value} content {item_id} from source {source_id}")
        return result

    async def delete_source(self, source_id: str) -> SourceDeletionResult:
        """
        Tear down a knowledge source.

        Agents are captured before the row goes so they can be re-pointed
        afterwards without the removed store.
        """
        source = self.repository.get_source(source_id)
        agents = self.repository.list_agents_for_source(source_id)
        items = self.repository.list_content(source_id)

        result = SourceDeletionResult(source_id=source_id, vector_store_id=source.vector_store_id)

        for item in items:
            if not item.openai_file_id:
                continue
            if await self.file_store.delete(item.openai_file_id):
                result.files_deleted += 1
            else:
                result.files_orphaned.append(item.openai_file_id)

        if source.vector_store_id:
            result.vector_store_deleted = await self.index_manager.delete_index(source.vector_store_id)

        self.repository.delete_source(source_id)

        result.agents = await self.agent_sync.sync_agents(agents, source_id=source_id)

        logger.info(
            f"Deleted source {source_id}: {result.files_deleted} files removed, "
            f"{len(result.files_orphaned)} orphaned, {len(agents)} agents re-pointed"
        )
        return result


@lru_cache(maxsize=1)
def get_orchestrator() -> KnowledgeSyncOrchestrator:
    """Get the singleton orchestrator."""
    return KnowledgeSyncOrchestrator()
