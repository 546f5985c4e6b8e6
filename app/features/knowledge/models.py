"""
Domain models for knowledge sources, their content items and agents.

Content items are a tagged union discriminated by ``content_type`` so that
request bodies and metadata-store rows parse into the right class.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    TEXT = "text"
    QA = "qa"
    CATALOG = "catalog"
    WEBSITE = "website"


class KnowledgeSource(BaseModel):
    """A tenant-owned collection of content items with at most one vector store."""
    id: str
    name: str
    description: Optional[str] = None
    user_id: Optional[str] = None
    vector_store_id: Optional[str] = None
    vector_store_updated_at: Optional[datetime] = None


class Product(BaseModel):
    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    tax_rate: Optional[float] = None
    categories: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None


class _ContentBase(BaseModel):
    id: str
    knowledge_source_id: Optional[str] = None
    openai_file_id: Optional[str] = None


class TextContent(_ContentBase):
    content_type: Literal[ContentType.TEXT] = ContentType.TEXT
    content: str = Field(..., min_length=1)
    title: Optional[str] = None


class QAContent(_ContentBase):
    content_type: Literal[ContentType.QA] = ContentType.QA
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class CatalogContent(_ContentBase):
    content_type: Literal[ContentType.CATALOG] = ContentType.CATALOG
    instructions: Optional[str] = None
    products: List[Product] = Field(default_factory=list)


class WebsiteContent(_ContentBase):
    content_type: Literal[ContentType.WEBSITE] = ContentType.WEBSITE
    url: str = Field(..., min_length=1)
    title: Optional[str] = None
    content: Optional[str] = None


ContentItem = Annotated[
    Union[TextContent, QAContent, CatalogContent, WebsiteContent],
    Field(discriminator="content_type"),
]


class Agent(BaseModel):
    """A conversational assistant that searches one or more knowledge sources."""
    id: str
    name: Optional[str] = None
    openai_assistant_id: Optional[str] = None


# =========================================================================
# RESULTS
# =========================================================================

class AgentSyncReport(BaseModel):
    """Outcome of re-pointing every agent of a source at its current stores."""
    source_id: Optional[str] = None
    updated: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class SyncResult(BaseModel):
    """Outcome of one content mutation passing through the orchestrator."""
    source_id: str
    content_type: ContentType
    item_id: str
    vector_store_id: Optional[str] = None
    file_id: Optional[str] = None
    previous_file_id: Optional[str] = None
    previous_file_removed: bool = True
    attached: bool = False
    agents: Optional[AgentSyncReport] = None
    warnings: List[str] = Field(default_factory=list)


class SourceDeletionResult(BaseModel):
    source_id: str
    vector_store_id: Optional[str] = None
    vector_store_deleted: bool = True
    files_deleted: int = 0
    files_orphaned: List[str] = Field(default_factory=list)
    agents: Optional[AgentSyncReport] = None


class SourceMigrationResult(BaseModel):
    source_id: str
    status: Literal["migrated", "agents_only", "failed"]
    vector_store_id: Optional[str] = None
    items_synced: int = 0
    items_skipped: int = 0
    error: Optional[str] = None


class MigrationReport(BaseModel):
    run_id: Optional[str] = None
    sources: List[SourceMigrationResult] = Field(default_factory=list)

    @property
    def failed(self) -> List[SourceMigrationResult]:
        return [s for s in self.sources if s.status == "failed"]
