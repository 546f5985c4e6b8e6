"""
Vector store lifecycle - one OpenAI vector store per knowledge source.

Owns get-or-create of the store, attaching files in bounded batches,
detaching files and the store's expiration policy.

Concurrency:
    ensure_index is single-writer per source. Within this process an
    asyncio.Lock keyed by source id serializes callers; across processes the
    metadata write is a compare-and-set (only written while still null), and
    the loser of that race deletes the store it just created.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import openai
from openai import AsyncOpenAI

from app.core.config import settings
from app.features.knowledge.chunking import profile_for
from app.features.knowledge.models import ContentType, KnowledgeSource
from app.shared.errors import (
    IndexAttachError,
    IndexCreationError,
    KnowledgeSyncError,
    MetadataStoreError,
    VectorIndexError,
)

logger = logging.getLogger("LinkAI.Knowledge.VectorIndex")


def expiration_policy(days: int) -> Dict[str, Any]:
    return {"anchor": "last_active_at", "days": days}


class VectorIndexManager:
    """
    Manages the remote vector store of each knowledge source.

    Usage:
        manager = VectorIndexManager()
        store_id = await manager.ensure_index(source_id)
        await manager.attach_files(store_id, [file_id], ContentType.QA)
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        repository=None,
        expiration_days: Optional[int] = None,
        batch_size: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
        attach_timeout: Optional[float] = None,
    ):
        self._client = client
        self._repository = repository
        self.expiration_days = expiration_days or settings.VECTOR_STORE_EXPIRATION_DAYS
        self.batch_size = min(batch_size or settings.VECTOR_STORE_BATCH_SIZE, 100)
        self.poll_interval_ms = poll_interval_ms or settings.VECTOR_STORE_POLL_INTERVAL_MS
        self.attach_timeout = attach_timeout if attach_timeout is not None else settings.VECTOR_STORE_ATTACH_TIMEOUT_SECONDS
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            from app.services.openai_client import get_openai_client
            self._client = get_openai_client()
        return self._client

    @property
    def repository(self):
        """Lazy-load the knowledge repository."""
        if self._repository is None:
            from app.features.database import get_database_client
            self._repository = get_database_client().knowledge
        return self._repository

    def _lock_for(self, source_id: str) -> asyncio.Lock:
        lock = self._locks.get(source_id)
        if lock is None:
            lock = self._locks[source_id] = asyncio.Lock()
        return lock

    def _release_lock(self, source_id: str) -> None:
        # Once the handle is persisted no caller needs the lock again;
        # waiters already hold a reference and re-read the handle
        self._locks.pop(source_id, None)

    # ==================== GET-OR-CREATE ====================

    async def ensure_index(self, source_id: str) -> str:
        """
        Return the source's vector store id, creating the store on first use.

        A persisted handle is trusted as-is; no network call verifies it.

        Raises:
            KnowledgeSourceNotFoundError: If the source does not exist
            IndexCreationError: If the store could not be created or persisted
        """
        source = self.repository.get_source(source_id)
        if source.vector_store_id:
            return source.vector_store_id

        async with self._lock_for(source_id):
            # Another task may have created it while we waited
            source = self.repository.get_source(source_id)
            if source.vector_store_id:
                self._release_lock(source_id)
                return source.vector_store_id

            vector_store_id = await self._create_remote(source)

            try:
                persisted = self.repository.claim_vector_store_id(source_id, vector_store_id)
            except KnowledgeSyncError as e:
                await self.delete_index(vector_store_id)
                raise IndexCreationError(
                    f"Created vector store {vector_store_id} but could not persist it: {e}",
                    details={"source_id": source_id},
                ) from e

            if persisted != vector_store_id:
                logger.warning(
                    f"Source {source_id} already got vector store {persisted} from another writer; "
                    f"discarding {vector_store_id}"
                )
                await self.delete_index(vector_store_id)
            else:
                logger.info(f"Created vector store {vector_store_id} for source {source_id}")

            self._release_lock(source_id)
            return persisted

    async def _create_remote(self, source: KnowledgeSource) -> str:
        try:
            vector_store = await self.client.vector_stores.create(
                name=f"{source.name} Vector Store",
                expires_after=expiration_policy(self.expiration_days),
                metadata={"knowledge_source_id": source.id},
            )
        except Exception as e:
            logger.error(f"Failed to create vector store for source {source.id}: {e}")
            raise IndexCreationError(
                f"Failed to create vector store for source {source.id}: {e}",
                details={"source_id": source.id},
            ) from e
        return vector_store.id

    # ==================== FILES ====================

    async def attach_files(
        self,
        vector_store_id: str,
        file_ids: List[str],
        content_type: Union[ContentType, str, None] = None,
    ) -> None:
        """
        Attach files in batches of at most ``batch_size`` and wait for each.

        Raises:
            IndexAttachError: If a batch fails, is cancelled, or times out
        """
        if not file_ids:
            return

        strategy = profile_for(content_type).as_chunking_strategy()
        total_batches = (len(file_ids) + self.batch_size - 1) // self.batch_size

        for number, start in enumerate(range(0, len(file_ids), self.batch_size), start=1):
            batch = file_ids[start:start + self.batch_size]
            logger.info(
                f"Attaching batch {number}/{total_batches} ({len(batch)} files) to {vector_store_id}"
            )
            await self._attach_batch(vector_store_id, batch, strategy)

        # The files are attached; a failed bump must not hide that from the caller
        try:
            source = self.repository.find_source_by_vector_store(vector_store_id)
            if source is not None:
                self.repository.touch_vector_store(source.id)
        except MetadataStoreError as e:
            logger.warning(f"Attached files to {vector_store_id} but could not bump its source: {e}")

    async def _attach_batch(self, vector_store_id: str, batch: List[str], strategy: Dict[str, Any]) -> None:
        request = self.client.vector_stores.file_batches.create_and_poll(
            vector_store_id=vector_store_id,
            file_ids=batch,
            chunking_strategy=strategy,
            poll_interval_ms=self.poll_interval_ms,
        )
        try:
            if self.attach_timeout:
                result = await asyncio.wait_for(request, timeout=self.attach_timeout)
            else:
                result = await request
        except asyncio.TimeoutError as e:
            raise IndexAttachError(
                f"Attaching {len(batch)} files to {vector_store_id} timed out after {self.attach_timeout}s",
                details={"vector_store_id": vector_store_id, "file_ids": batch},
            ) from e
        except Exception as e:
            raise IndexAttachError(
                f"Failed to attach {len(batch)} files to {vector_store_id}: {e}",
                details={"vector_store_id": vector_store_id, "file_ids": batch},
            ) from e

        if result.status != "completed":
            raise IndexAttachError(
                f"File batch {result.id} on {vector_store_id} ended as {result.status}",
                details={"vector_store_id": vector_store_id, "file_ids": batch},
            )

        failed = getattr(result.file_counts, "failed", 0) if result.file_counts else 0
        if failed:
            logger.warning(f"File batch {result.id} completed with {failed} failed files")

    async def detach_file(self, vector_store_id: str, file_id: str) -> bool:
        """
        Remove a file from a vector store. Best-effort.

        Returns:
            True if the file is no longer attached, False on failure
        """
        try:
            await self.client.vector_stores.files.delete(file_id, vector_store_id=vector_store_id)
        except openai.NotFoundError:
            logger.info(f"File {file_id} was not attached to {vector_store_id}")
            return True
        except Exception as e:
            logger.warning(f"Failed to detach file {file_id} from {vector_store_id}: {e}")
            return False

        logger.info(f"Detached file {file_id} from {vector_store_id}")
        return True

    # ==================== ADMIN ====================

    async def refresh_expiration(self, vector_store_id: str, days: int) -> None:
        """Replace the store's expiration policy (days after last activity)."""
        try:
            await self.client.vector_stores.update(
                vector_store_id,
                expires_after=expiration_policy(days),
            )
        except Exception as e:
            raise VectorIndexError(
                f"Failed to update expiration of {vector_store_id}: {e}",
                details={"vector_store_id": vector_store_id, "days": days},
            ) from e
        logger.info(f"Vector store {vector_store_id} now expires {days} days after last activity")

    async def retrieve_status(self, vector_store_id: str) -> Dict[str, Any]:
        """Current provider-side status of a vector store."""
        try:
            store = await self.client.vector_stores.retrieve(vector_store_id)
        except Exception as e:
            raise VectorIndexError(
                f"Failed to retrieve vector store {vector_store_id}: {e}",
                details={"vector_store_id": vector_store_id},
            ) from e

        counts = store.file_counts
        return {
            "id": store.id,
            "name": store.name,
            "status": store.status,
            "file_counts": counts.model_dump() if counts is not None else None,
            "last_active_at": store.last_active_at,
            "expires_at": store.expires_at,
        }

    async def delete_index(self, vector_store_id: str) -> bool:
        """Delete a whole vector store. Best-effort."""
        try:
            await self.client.vector_stores.delete(vector_store_id)
        except openai.NotFoundError:
            return True
        except Exception as e:
            logger.warning(f"Failed to delete vector store {vector_store_id}: {e}")
            return False

        logger.info(f"Deleted vector store {vector_store_id}")
        return True
