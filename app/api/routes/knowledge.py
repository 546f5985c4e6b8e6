"""
Knowledge source API endpoints.

These endpoints are the inbound trigger surface for content edits:
1. Content created / updated / deleted -> orchestrator sync
2. Agent resync and index administration for a source
3. Source teardown

Domain errors (KnowledgeSyncError) are rendered by the exception handler in
main.py, so handlers here only deal with request validation.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query
from pydantic import TypeAdapter, ValidationError

from app.api.dependencies import get_repository, get_sync_orchestrator
from app.api.models import ExpirationUpdateRequest, IndexStatusResponse
from app.features.knowledge.models import (
    AgentSyncReport,
    ContentItem,
    ContentType,
    SourceDeletionResult,
    SyncResult,
)
from app.shared.correlation import get_correlation_id
from app.shared.errors import ErrorCode, error_response, validation_error

logger = logging.getLogger("LinkAI.API.Knowledge")
router = APIRouter(prefix="/knowledge-sources", tags=["Knowledge"])

_content_adapter = TypeAdapter(ContentItem)


def _parse_content(payload: Dict[str, Any]):
    return _content_adapter.validate_python(payload)


def _invalid_content(e: ValidationError):
    return validation_error(
        "Invalid content item",
        details={"errors": e.errors(include_url=False, include_context=False)},
        correlation_id=get_correlation_id(),
    )


# ===================== Content =====================

@router.post("/{source_id}/contents", response_model=SyncResult)
async def create_content(source_id: str, payload: Dict[str, Any] = Body(...)):
    """
    Sync a newly created content item into the source's vector store.

    The body is a content item tagged by ``content_type``
    (text, qa, catalog or website).
    """
    try:
        item = _parse_content(payload)
    except ValidationError as e:
        return _invalid_content(e)

    logger.info(f"Content created: {item.content_type.value} {item.id} in source {source_id}")
    return await get_sync_orchestrator().on_content_created(source_id, item)


@router.put("/{source_id}/contents/{item_id}", response_model=SyncResult)
async def update_content(source_id: str, item_id: str, payload: Dict[str, Any] = Body(...)):
    """Replace the item's file with one built from the edited content."""
    if payload.get("id", item_id) != item_id:
        return validation_error(
            "Body id does not match the path",
            details={"path_id": item_id, "body_id": payload.get("id")},
            correlation_id=get_correlation_id(),
        )

    try:
        item = _parse_content({**payload, "id": item_id})
    except ValidationError as e:
        return _invalid_content(e)

    logger.info(f"Content updated: {item.content_type.value} {item_id} in source {source_id}")
    return await get_sync_orchestrator().on_content_updated(source_id, item)


@router.delete("/{source_id}/contents/{content_type}/{item_id}", response_model=SyncResult)
async def delete_content(
    source_id: str,
    content_type: ContentType,
    item_id: str,
    file_id: Optional[str] = Query(None, description="File of an item whose row is already gone"),
):
    """Remove the item's file from the index and delete the item; agents are always resynced."""
    logger.info(f"Content deleted: {content_type.value} {item_id} in source {source_id}")
    return await get_sync_orchestrator().on_content_deleted(
        source_id, content_type, item_id, file_id=file_id
    )


# ===================== Agents & Index =====================

@router.post("/{source_id}/sync-agents", response_model=AgentSyncReport)
async def sync_agents(source_id: str):
    """Re-point every agent using this source at its current vector stores."""
    get_repository().get_source(source_id)
    return await get_sync_orchestrator().agent_sync.sync_agents_for(source_id)


@router.patch("/{source_id}/expiration")
async def update_expiration(source_id: str, request: ExpirationUpdateRequest):
    """Change how long the source's vector store lives after its last activity."""
    source = get_repository().get_source(source_id)
    if not source.vector_store_id:
        return error_response(
            code=ErrorCode.NOT_FOUND,
            message=f"Knowledge source {source_id} has no vector store yet",
            status_code=404,
            details={"source_id": source_id},
            correlation_id=get_correlation_id(),
        )

    await get_sync_orchestrator().index_manager.refresh_expiration(source.vector_store_id, request.days)
    return {"source_id": source_id, "vector_store_id": source.vector_store_id, "days": request.days}


@router.get("/{source_id}/index", response_model=IndexStatusResponse)
async def get_index_status(source_id: str):
    """Metadata and provider-side status of the source's vector store."""
    source = get_repository().get_source(source_id)
    response = IndexStatusResponse(
        source_id=source_id,
        vector_store_id=source.vector_store_id,
        vector_store_updated_at=source.vector_store_updated_at,
    )
    if source.vector_store_id:
        response.remote = await get_sync_orchestrator().index_manager.retrieve_status(source.vector_store_id)
    return response


# ===================== Source =====================

@router.delete("/{source_id}", response_model=SourceDeletionResult)
async def delete_source(source_id: str):
    """Delete a source, its files and vector store, then resync its agents."""
    logger.info(f"Deleting knowledge source {source_id}")
    return await get_sync_orchestrator().delete_source(source_id)
