"""
Knowledge Repository - metadata for knowledge sources, content and agents.

Handles:
- Knowledge sources and their vector store handle (compare-and-set on first write)
- Content items (text, Q&A, catalog, website) and their uploaded file handle
- The chatbot <-> knowledge source association

Every failure is raised as a typed error; callers decide what is fatal.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.features.knowledge.models import (
    Agent,
    CatalogContent,
    ContentType,
    KnowledgeSource,
    Product,
    QAContent,
    TextContent,
    WebsiteContent,
)
from app.shared.errors import (
    ContentNotFoundError,
    KnowledgeSourceNotFoundError,
    MetadataStoreError,
    PreviousFileLookupError,
)

logger = logging.getLogger("LinkAI.Database.Knowledge")


CONTENT_TABLES = {
    ContentType.TEXT: "text_contents",
    ContentType.QA: "qa_contents",
    ContentType.CATALOG: "catalog_contents",
    ContentType.WEBSITE: "website_contents",
}

SOURCE_COLUMNS = "id, name, description, user_id, vector_store_id, vector_store_updated_at"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _content_from_row(content_type: ContentType, row: Dict):
    if content_type == ContentType.TEXT:
        return TextContent(**row)
    if content_type == ContentType.QA:
        return QAContent(**row)
    if content_type == ContentType.WEBSITE:
        return WebsiteContent(**row)
    products = [Product(**p) for p in (row.get("catalog_products") or [])]
    fields = {k: v for k, v in row.items() if k != "catalog_products"}
    return CatalogContent(**fields, products=products)


def _select_for(content_type: ContentType) -> str:
    if content_type == ContentType.CATALOG:
        return "*, catalog_products(*)"
    return "*"


class KnowledgeRepository:
    """Repository for knowledge source, content item and agent metadata."""

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client

    # =========================================================================
    # KNOWLEDGE SOURCES
    # =========================================================================

    def get_source(self, source_id: str) -> KnowledgeSource:
        try:
            result = self.client.table("knowledge_sources").select(
                SOURCE_COLUMNS
            ).eq("id", source_id).limit(1).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to load knowledge source {source_id}: {e}") from e

        if not result.data:
            raise KnowledgeSourceNotFoundError(source_id)
        return KnowledgeSource(**result.data[0])

    def list_sources(self) -> List[KnowledgeSource]:
        try:
            result = self.client.table("knowledge_sources").select(
                SOURCE_COLUMNS
            ).order("created_at").execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to list knowledge sources: {e}") from e
        return [KnowledgeSource(**row) for row in result.data or []]

    def claim_vector_store_id(self, source_id: str, vector_store_id: str) -> str:
        """
        Persist a vector store id only if the source has none yet.

        Returns:
            The handle that ended up persisted: ours if we won, otherwise
            the one written by the concurrent winner.
        """
        try:
            result = self.client.table("knowledge_sources").update({
                "vector_store_id": vector_store_id,
                "vector_store_updated_at": _now(),
            }).eq("id", source_id).is_("vector_store_id", "null").execute()
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to persist vector store {vector_store_id} for source {source_id}: {e}"
            ) from e

        if result.data:
            return vector_store_id

        current = self.get_source(source_id).vector_store_id
        if current is None:
            raise MetadataStoreError(
                f"Vector store for source {source_id} was neither written nor present"
            )
        return current

    def touch_vector_store(self, source_id: str) -> None:
        """Bump vector_store_updated_at to signal the index changed."""
        try:
            self.client.table("knowledge_sources").update({
                "vector_store_updated_at": _now(),
            }).eq("id", source_id).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to bump timestamp of source {source_id}: {e}") from e

    def find_source_by_vector_store(self, vector_store_id: str) -> Optional[KnowledgeSource]:
        try:
            result = self.client.table("knowledge_sources").select(
                SOURCE_COLUMNS
            ).eq("vector_store_id", vector_store_id).limit(1).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to look up source of vector store {vector_store_id}: {e}") from e
        return KnowledgeSource(**result.data[0]) if result.data else None

    def get_vector_store_ids(self, source_ids: List[str]) -> List[str]:
        """Current vector store ids of the given sources, in source order."""
        if not source_ids:
            return []
        try:
            result = self.client.table("knowledge_sources").select(
                "id, vector_store_id"
            ).in_("id", source_ids).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to load vector stores for sources: {e}") from e

        by_source = {row["id"]: row.get("vector_store_id") for row in result.data or []}
        return [by_source[sid] for sid in source_ids if by_source.get(sid)]

    def delete_source(self, source_id: str) -> None:
        """Delete a source. Content rows and agent links cascade in the database."""
        try:
            self.client.table("knowledge_sources").delete().eq("id", source_id).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to delete knowledge source {source_id}: {e}") from e
        logger.info(f"Deleted knowledge source {source_id}")

    # =========================================================================
    # CONTENT ITEMS
    # =========================================================================

    def get_content(self, content_type: ContentType, item_id: str):
        table = CONTENT_TABLES[content_type]
        try:
            result = self.client.table(table).select(
                _select_for(content_type)
            ).eq("id", item_id).limit(1).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to load {content_type.value} content {item_id}: {e}") from e

        if not result.data:
            raise ContentNotFoundError(content_type.value, item_id)
        return _content_from_row(content_type, result.data[0])

    def list_content(self, source_id: str) -> List:
        """All content items of a source, across every content table."""
        items = []
        for content_type, table in CONTENT_TABLES.items():
            try:
                result = self.client.table(table).select(
                    _select_for(content_type)
                ).eq("knowledge_source_id", source_id).execute()
            except Exception as e:
                raise MetadataStoreError(
                    f"Failed to list {content_type.value} content of source {source_id}: {e}"
                ) from e
            items.extend(_content_from_row(content_type, row) for row in result.data or [])
        return items

    def get_file_id(self, content_type: ContentType, item_id: str) -> Optional[str]:
        """
        Read the persisted file handle of a content item.

        Returns None only when there is genuinely no previous file (no row,
        or a row without a handle).

        Raises:
            PreviousFileLookupError: If the lookup itself failed
        """
        table = CONTENT_TABLES[content_type]
        try:
            result = self.client.table(table).select(
                "openai_file_id"
            ).eq("id", item_id).limit(1).execute()
        except Exception as e:
            raise PreviousFileLookupError(
                f"Could not read file handle of {content_type.value} content {item_id}: {e}",
                details={"content_type": content_type.value, "item_id": item_id},
            ) from e

        if not result.data:
            return None
        return result.data[0].get("openai_file_id")

    def set_file_id(self, content_type: ContentType, item_id: str, file_id: Optional[str]) -> None:
        table = CONTENT_TABLES[content_type]
        try:
            self.client.table(table).update({
                "openai_file_id": file_id,
            }).eq("id", item_id).execute()
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to set file handle of {content_type.value} content {item_id}: {e}"
            ) from e

    def delete_content(self, content_type: ContentType, item_id: str) -> None:
        """Delete a content item row. Catalog products cascade in the database."""
        table = CONTENT_TABLES[content_type]
        try:
            self.client.table(table).delete().eq("id", item_id).execute()
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to delete {content_type.value} content {item_id}: {e}"
            ) from e
        logger.info(f"Deleted {content_type.value} content {item_id}")

    # =========================================================================
    # AGENTS
    # =========================================================================

    def list_agents_for_source(self, source_id: str) -> List[Agent]:
        try:
            result = self.client.table("chatbot_knowledge_sources").select(
                "chatbot_id, chatbots(id, name, openai_assistant_id)"
            ).eq("knowledge_source_id", source_id).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to list agents of source {source_id}: {e}") from e

        agents = []
        for row in result.data or []:
            chatbot = row.get("chatbots") or {"id": row["chatbot_id"]}
            agents.append(Agent(**chatbot))
        return agents

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        try:
            result = self.client.table("chatbots").select(
                "id, name, openai_assistant_id"
            ).eq("id", agent_id).limit(1).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to load agent {agent_id}: {e}") from e
        return Agent(**result.data[0]) if result.data else None

    def list_source_ids_for_agent(self, agent_id: str) -> List[str]:
        try:
            result = self.client.table("chatbot_knowledge_sources").select(
                "knowledge_source_id"
            ).eq("chatbot_id", agent_id).execute()
        except Exception as e:
            raise MetadataStoreError(f"Failed to list sources of agent {agent_id}: {e}") from e
        return [row["knowledge_source_id"] for row in result.data or []]
