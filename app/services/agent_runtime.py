"""
Agent runtime - points OpenAI assistants at their knowledge.

Each chatbot is backed by an OpenAI assistant with the file_search tool.
The call here always replaces the whole set of vector stores, so repeating
it with the same input is harmless.
"""

import logging
from typing import List, Optional

from openai import AsyncOpenAI

from app.shared.errors import AgentSyncError

logger = logging.getLogger("LinkAI.AgentRuntime")


class AssistantRuntime:
    """Updates the file_search configuration of OpenAI assistants."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            from app.services.openai_client import get_openai_client
            self._client = get_openai_client()
        return self._client

    async def set_tool_index_set(self, assistant_id: str, vector_store_ids: List[str]) -> None:
        """
        Replace the assistant's searchable vector stores.

        Args:
            assistant_id: Remote assistant id
            vector_store_ids: Full set of stores the assistant may search

        Raises:
            AgentSyncError: If the provider rejects the update
        """
        try:
            await self.client.beta.assistants.update(
                assistant_id,
                tools=[{"type": "file_search"}],
                tool_resources={"file_search": {"vector_store_ids": list(vector_store_ids)}},
            )
        except Exception as e:
            raise AgentSyncError(
                f"Failed to update assistant {assistant_id}: {e}",
                details={"assistant_id": assistant_id, "vector_store_ids": list(vector_store_ids)},
            ) from e

        logger.info(f"Assistant {assistant_id} now searches {len(vector_store_ids)} vector stores")
