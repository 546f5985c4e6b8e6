"""
Vector index backfill for knowledge sources created before indexing existed.

Walks every source once, in order:
- sources without a vector store get every content item synced, then their
  agents re-pointed
- sources with one get only the items still lacking a file synced; with
  none pending, only their agents are re-pointed

Once a source has a store, items carrying a file handle are skipped, so
re-running after a partial failure only redoes what is missing. A failing source is logged and
recorded; the run moves on to the next one.
"""

import logging
from typing import Optional

from app.features.knowledge.models import MigrationReport, SourceMigrationResult
from app.shared.correlation import CorrelationContext

logger = logging.getLogger("LinkAI.Knowledge.Migration")


class MigrationRunner:
    """Bulk, idempotent migration of sources into vector stores."""

    def __init__(self, orchestrator=None, repository=None):
        self._orchestrator = orchestrator
        self._repository = repository

    @property
    def orchestrator(self):
        if self._orchestrator is None:
            from app.features.knowledge.orchestrator import get_orchestrator
            self._orchestrator = get_orchestrator()
        return self._orchestrator

    @property
    def repository(self):
        if self._repository is None:
            from app.features.database import get_database_client
            self._repository = get_database_client().knowledge
        return self._repository

    async def run(self, run_id: Optional[str] = None) -> MigrationReport:
        with CorrelationContext(correlation_id=run_id, prefix="migration") as correlation_id:
            report = MigrationReport(run_id=correlation_id)
            sources = self.repository.list_sources()
            logger.info(f"Starting vector index migration for {len(sources)} sources")

            for position, source in enumerate(sources, start=1):
                logger.info(f"[{position}/{len(sources)}] Migrating source {source.id} ({source.name})")
                outcome = await self.migrate_source(source)
                report.sources.append(outcome)

            logger.info(
                f"Migration finished: {len(report.sources) - len(report.failed)} ok, "
                f"{len(report.failed)} failed"
            )
            return report

    async def migrate_source(self, source) -> SourceMigrationResult:
        """Migrate one source; never raises."""
        try:
            items = self.repository.list_content(source.id)
            if source.vector_store_id:
                pending = [item for item in items if not item.openai_file_id]
            else:
                # Handles from before the store existed point at nothing searchable
                pending = items

            # Already migrated; only catch agents linked since then
            if source.vector_store_id and not pending:
                await self.orchestrator.agent_sync.sync_agents_for(source.id)
                return SourceMigrationResult(
                    source_id=source.id,
                    status="agents_only",
                    vector_store_id=source.vector_store_id,
                    items_skipped=len(items),
                )

            outcome = SourceMigrationResult(
                source_id=source.id,
                status="migrated",
                vector_store_id=source.vector_store_id,
                items_skipped=len(items) - len(pending),
            )
            for item in pending:
                # A legacy handle is replaced, not left behind as a second file
                sync = await self.orchestrator.sync_content(
                    source.id, item, replace_existing=bool(item.openai_file_id)
                )
                outcome.vector_store_id = sync.vector_store_id
                outcome.items_synced += 1

            # A source with no content still gets its agents reconciled
            await self.orchestrator.agent_sync.sync_agents_for(source.id)
            return outcome

        except Exception as e:
            logger.error(f"Migration of source {source.id} failed: {e}", exc_info=True)
            return SourceMigrationResult(source_id=source.id, status="failed", error=str(e))
