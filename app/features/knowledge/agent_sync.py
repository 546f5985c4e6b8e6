"""
Agent synchronization - keeps every chatbot's searchable stores current.

The set of vector stores an agent searches is always recomputed from the
metadata store as the union over all of its knowledge sources. Nothing is
cached, so a failed sync converges on the next successful one.
"""

import logging
from typing import Optional

from app.features.knowledge.models import Agent, AgentSyncReport
from app.services.agent_runtime import AssistantRuntime
from app.shared.errors import KnowledgeSyncError

logger = logging.getLogger("LinkAI.Knowledge.AgentSync")


class AgentSynchronizer:
    """Propagates vector store changes to the agents that depend on them."""

    def __init__(self, repository=None, runtime: Optional[AssistantRuntime] = None):
        self._repository = repository
        self.runtime = runtime or AssistantRuntime()

    @property
    def repository(self):
        """Lazy-load the knowledge repository."""
        if self._repository is None:
            from app.features.database import get_database_client
            self._repository = get_database_client().knowledge
        return self._repository

    async def sync_agents_for(self, source_id: str) -> AgentSyncReport:
        """
        Re-point every agent associated with a source.

        Per-agent failures are logged and collected; the remaining agents are
        still processed. Listing the agents is the only step that raises.
        """
        agents = self.repository.list_agents_for_source(source_id)
        return await self.sync_agents(agents, source_id=source_id)

    async def sync_agents(self, agents: list[Agent], source_id: Optional[str] = None) -> AgentSyncReport:
        report = AgentSyncReport(source_id=source_id)

        for agent in agents:
            if not agent.openai_assistant_id:
                logger.info(f"Agent {agent.id} has no assistant yet, skipping")
                report.skipped.append(agent.id)
                continue
            try:
                await self._apply(agent)
            except KnowledgeSyncError as e:
                logger.error(f"Failed to sync agent {agent.id}: {e}")
                report.failed[agent.id] = e.message
                continue
            report.updated.append(agent.id)

        if agents:
            logger.info(
                f"Agent sync for source {source_id}: {len(report.updated)} updated, "
                f"{len(report.skipped)} skipped, {len(report.failed)} failed"
            )
        return report

    async def sync_agent(self, agent_id: str) -> bool:
        """
        Recompute and apply one agent's full store set.

        Returns:
            True if the agent was updated, False if it has no remote assistant
        """
        agent = self.repository.get_agent(agent_id)
        if agent is None or not agent.openai_assistant_id:
            return False
        await self._apply(agent)
        return True

    async def _apply(self, agent: Agent) -> None:
        source_ids = self.repository.list_source_ids_for_agent(agent.id)
        vector_store_ids = self.repository.get_vector_store_ids(source_ids)
        await self.runtime.set_tool_index_set(agent.openai_assistant_id, vector_store_ids)
