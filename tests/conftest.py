"""Pytest configuration and shared fixtures.

Provides an in-memory stand-in for the Supabase-backed KnowledgeRepository
and a fake AsyncOpenAI client that keeps vector store, file and assistant
state so tests can assert on the end result rather than on call sequences.
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional, Set

import httpx
import openai
import pytest
from pydantic import BaseModel

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.features.knowledge.models import Agent, ContentType, KnowledgeSource  # noqa: E402
from app.shared.errors import (  # noqa: E402
    ContentNotFoundError,
    KnowledgeSourceNotFoundError,
    MetadataStoreError,
    PreviousFileLookupError,
)


def not_found(message: str = "Not found") -> openai.NotFoundError:
    request = httpx.Request("DELETE", "https://api.openai.com/v1/test")
    return openai.NotFoundError(message, response=httpx.Response(404, request=request), body=None)


# =========================================================================
# METADATA STORE
# =========================================================================

class FakeRepository:
    """In-memory KnowledgeRepository with the same method surface."""

    def __init__(self):
        self.sources: Dict[str, KnowledgeSource] = {}
        self.contents: Dict[tuple, object] = {}
        self.agents: Dict[str, Agent] = {}
        self.links: Set[tuple] = set()
        self.touches: Dict[str, int] = {}

        self.fail_file_lookup = False
        self.fail_list_content_for: Set[str] = set()
        self.fail_find_source = False
        # Simulates another process persisting a store between our read and write
        self.race_winner: Optional[str] = None

    # ---- seeding helpers ----

    def add_source(self, source_id: str, name: str = "Acme", vector_store_id: Optional[str] = None):
        self.sources[source_id] = KnowledgeSource(id=source_id, name=name, vector_store_id=vector_store_id)
        return self.sources[source_id]

    def add_content(self, source_id: str, item):
        item.knowledge_source_id = source_id
        self.contents[(item.content_type, item.id)] = item
        return item

    def add_agent(self, agent_id: str, source_ids: List[str], assistant_id: Optional[str] = "default"):
        if assistant_id == "default":
            assistant_id = f"asst_{agent_id}"
        self.agents[agent_id] = Agent(id=agent_id, name=agent_id, openai_assistant_id=assistant_id)
        for source_id in source_ids:
            self.links.add((agent_id, source_id))
        return self.agents[agent_id]

    # ---- sources ----

    def get_source(self, source_id: str) -> KnowledgeSource:
        if source_id not in self.sources:
            raise KnowledgeSourceNotFoundError(source_id)
        return self.sources[source_id].model_copy()

    def list_sources(self) -> List[KnowledgeSource]:
        return [s.model_copy() for s in self.sources.values()]

    def claim_vector_store_id(self, source_id: str, vector_store_id: str) -> str:
        source = self.sources[source_id]
        if self.race_winner and source.vector_store_id is None:
            source.vector_store_id = self.race_winner
        if source.vector_store_id is None:
            source.vector_store_id = vector_store_id
            self.touch_vector_store(source_id)
        return source.vector_store_id

    def touch_vector_store(self, source_id: str) -> None:
        self.touches[source_id] = self.touches.get(source_id, 0) + 1

    def find_source_by_vector_store(self, vector_store_id: str) -> Optional[KnowledgeSource]:
        if self.fail_find_source:
            raise MetadataStoreError(f"Failed to look up source of vector store {vector_store_id}")
        for source in self.sources.values():
            if source.vector_store_id == vector_store_id:
                return source.model_copy()
        return None

    def get_vector_store_ids(self, source_ids: List[str]) -> List[str]:
        return [
            self.sources[sid].vector_store_id
            for sid in source_ids
            if sid in self.sources and self.sources[sid].vector_store_id
        ]

    def delete_source(self, source_id: str) -> None:
        self.sources.pop(source_id, None)
        self.contents = {k: v for k, v in self.contents.items() if v.knowledge_source_id != source_id}
        self.links = {link for link in self.links if link[1] != source_id}

    # ---- content ----

    def get_content(self, content_type: ContentType, item_id: str):
        if self.fail_file_lookup:
            raise MetadataStoreError(f"Failed to load {content_type.value} content {item_id}")
        if (content_type, item_id) not in self.contents:
            raise ContentNotFoundError(content_type.value, item_id)
        return self.contents[(content_type, item_id)].model_copy(deep=True)

    def list_content(self, source_id: str) -> List:
        if source_id in self.fail_list_content_for:
            raise MetadataStoreError(f"Failed to list content of source {source_id}")
        return [
            item.model_copy(deep=True)
            for item in self.contents.values()
            if item.knowledge_source_id == source_id
        ]

    def get_file_id(self, content_type: ContentType, item_id: str) -> Optional[str]:
        if self.fail_file_lookup:
            raise PreviousFileLookupError(f"Could not read file handle of {item_id}")
        item = self.contents.get((content_type, item_id))
        return item.openai_file_id if item else None

    def set_file_id(self, content_type: ContentType, item_id: str, file_id: Optional[str]) -> None:
        item = self.contents.get((content_type, item_id))
        if item is not None:
            item.openai_file_id = file_id

    def delete_content(self, content_type: ContentType, item_id: str) -> None:
        self.contents.pop((content_type, item_id), None)

    def file_id_of(self, content_type: ContentType, item_id: str) -> Optional[str]:
        return self.contents[(content_type, item_id)].openai_file_id

    # ---- agents ----

    def list_agents_for_source(self, source_id: str) -> List[Agent]:
        return [self.agents[a] for a, s in sorted(self.links) if s == source_id and a in self.agents]

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self.agents.get(agent_id)

    def list_source_ids_for_agent(self, agent_id: str) -> List[str]:
        return [s for a, s in sorted(self.links) if a == agent_id]


# =========================================================================
# OPENAI
# =========================================================================

class FakeFileCounts(BaseModel):
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0


class FakeFiles:
    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.names: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    async def create(self, file, purpose):
        if self.fail_upload:
            raise RuntimeError("upload rejected")
        name, data, _mime = file
        self._counter += 1
        file_id = f"file_{self._counter}"
        self.files[file_id] = data
        self.names[file_id] = name
        return SimpleNamespace(id=file_id, filename=name, purpose=purpose)

    async def delete(self, file_id):
        if self.fail_delete:
            raise RuntimeError("delete rejected")
        if file_id not in self.files:
            raise not_found(f"No such file: {file_id}")
        del self.files[file_id]
        self.deleted.append(file_id)
        return SimpleNamespace(id=file_id, deleted=True)


class FakeVectorStoreFiles:
    def __init__(self, parent: "FakeVectorStores"):
        self.parent = parent
        self.fail_delete = False

    async def delete(self, file_id, *, vector_store_id):
        if self.fail_delete:
            raise RuntimeError("detach rejected")
        attached = self.parent.stores[vector_store_id]["files"]
        if file_id not in attached:
            raise not_found(f"No such file in store: {file_id}")
        attached.discard(file_id)
        return SimpleNamespace(id=file_id, deleted=True)


class FakeFileBatches:
    def __init__(self, parent: "FakeVectorStores"):
        self.parent = parent
        self.calls: List[dict] = []
        self.status = "completed"
        self.error: Optional[Exception] = None
        self.delay = 0.0

    async def create_and_poll(self, vector_store_id, *, file_ids, chunking_strategy=None, poll_interval_ms=None):
        self.calls.append({
            "vector_store_id": vector_store_id,
            "file_ids": list(file_ids),
            "chunking_strategy": chunking_strategy,
            "poll_interval_ms": poll_interval_ms,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.status == "completed":
            self.parent.stores[vector_store_id]["files"].update(file_ids)
        return SimpleNamespace(
            id=f"vsfb_{len(self.calls)}",
            status=self.status,
            file_counts=FakeFileCounts(completed=len(file_ids), total=len(file_ids)),
        )


class FakeVectorStores:
    def __init__(self):
        self.stores: Dict[str, dict] = {}
        self.deleted: List[str] = []
        self.files = FakeVectorStoreFiles(self)
        self.file_batches = FakeFileBatches(self)
        self.create_calls = 0
        self.fail_create = False
        self._counter = 0

    async def create(self, *, name, expires_after=None, metadata=None):
        self.create_calls += 1
        # Let concurrent callers interleave here
        await asyncio.sleep(0)
        if self.fail_create:
            raise RuntimeError("quota exceeded")
        self._counter += 1
        store_id = f"vs_{self._counter}"
        self.stores[store_id] = {
            "name": name,
            "expires_after": expires_after,
            "metadata": metadata,
            "files": set(),
        }
        return SimpleNamespace(id=store_id, name=name)

    async def update(self, vector_store_id, *, expires_after=None):
        if vector_store_id not in self.stores:
            raise not_found(f"No such vector store: {vector_store_id}")
        self.stores[vector_store_id]["expires_after"] = expires_after
        return SimpleNamespace(id=vector_store_id)

    async def retrieve(self, vector_store_id):
        if vector_store_id not in self.stores:
            raise not_found(f"No such vector store: {vector_store_id}")
        store = self.stores[vector_store_id]
        count = len(store["files"])
        return SimpleNamespace(
            id=vector_store_id,
            name=store["name"],
            status="completed",
            file_counts=FakeFileCounts(completed=count, total=count),
            last_active_at=1700000000,
            expires_at=None,
        )

    async def delete(self, vector_store_id):
        if vector_store_id not in self.stores:
            raise not_found(f"No such vector store: {vector_store_id}")
        del self.stores[vector_store_id]
        self.deleted.append(vector_store_id)
        return SimpleNamespace(id=vector_store_id, deleted=True)


class FakeAssistants:
    def __init__(self):
        self.configs: Dict[str, List[str]] = {}
        self.tools: Dict[str, list] = {}
        self.failing: Set[str] = set()

    async def update(self, assistant_id, *, tools=None, tool_resources=None):
        if assistant_id in self.failing:
            raise RuntimeError(f"assistant {assistant_id} unavailable")
        self.tools[assistant_id] = tools
        self.configs[assistant_id] = list(tool_resources["file_search"]["vector_store_ids"])
        return SimpleNamespace(id=assistant_id)


class FakeOpenAI:
    def __init__(self):
        self.files = FakeFiles()
        self.vector_stores = FakeVectorStores()
        self.beta = SimpleNamespace(assistants=FakeAssistants())

    @property
    def assistants(self) -> FakeAssistants:
        return self.beta.assistants


# =========================================================================
# FIXTURES
# =========================================================================

@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def file_store(openai_client):
    from app.features.knowledge.file_store import RemoteFileStore
    return RemoteFileStore(client=openai_client)


@pytest.fixture
def index_manager(repo, openai_client):
    from app.features.knowledge.vector_index import VectorIndexManager
    return VectorIndexManager(
        client=openai_client,
        repository=repo,
        expiration_days=30,
        batch_size=100,
        poll_interval_ms=10,
        attach_timeout=0,
    )


@pytest.fixture
def agent_sync(repo, openai_client):
    from app.features.knowledge.agent_sync import AgentSynchronizer
    from app.services.agent_runtime import AssistantRuntime
    return AgentSynchronizer(repository=repo, runtime=AssistantRuntime(client=openai_client))


@pytest.fixture
def orchestrator(repo, file_store, index_manager, agent_sync):
    from app.features.knowledge.orchestrator import KnowledgeSyncOrchestrator
    return KnowledgeSyncOrchestrator(
        repository=repo,
        file_store=file_store,
        index_manager=index_manager,
        agent_sync=agent_sync,
    )
