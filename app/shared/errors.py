"""
Error types and standardized error responses for the knowledge sync service.

Two layers live here:

1. A typed exception hierarchy rooted at KnowledgeSyncError. Fatal-to-step
   failures (index creation, upload, metadata lookups) are raised and abort
   the current content item. Best-effort failures (file delete, detach) are
   never raised; the components return False and log instead.

2. Helpers that render any of these as a consistent JSON error body with
   correlation ID tracking.

Usage:
    from app.shared.errors import FileUploadError, error_response_for

    try:
        await orchestrator.on_content_created(source_id, item)
    except KnowledgeSyncError as exc:
        return error_response_for(exc, correlation_id=get_correlation_id())
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standard error codes used across the service."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    TIMEOUT = "TIMEOUT"

    # Domain-specific errors
    SYNC_ERROR = "SYNC_ERROR"
    INDEX_CREATION_ERROR = "INDEX_CREATION_ERROR"
    FILE_UPLOAD_ERROR = "FILE_UPLOAD_ERROR"
    INDEX_ATTACH_ERROR = "INDEX_ATTACH_ERROR"
    AGENT_SYNC_ERROR = "AGENT_SYNC_ERROR"


# =========================================================================
# EXCEPTIONS
# =========================================================================

class KnowledgeSyncError(Exception):
    """Base class for every error raised by the sync engine."""

    code: ErrorCode = ErrorCode.SYNC_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class KnowledgeSourceNotFoundError(KnowledgeSyncError):
    """The knowledge source does not exist in the metadata store."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, source_id: str):
        super().__init__(
            f"Knowledge source not found: {source_id}",
            details={"resource_type": "knowledge_source", "resource_id": source_id},
        )
        self.source_id = source_id


class ContentNotFoundError(KnowledgeSyncError):
    """A content item does not exist in the metadata store."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, content_type: str, item_id: str):
        super().__init__(
            f"{content_type} content not found: {item_id}",
            details={"resource_type": f"{content_type}_content", "resource_id": item_id},
        )
        self.content_type = content_type
        self.item_id = item_id


class MetadataStoreError(KnowledgeSyncError):
    """A read or write against the metadata store failed."""

    code = ErrorCode.DATABASE_ERROR
    status_code = 500


class PreviousFileLookupError(MetadataStoreError):
    """
    The persisted file handle of a content item could not be read.

    Raised instead of proceeding, since creating a new file without knowing
    the old one can leave two live files for the same item.
    """


class ProviderError(KnowledgeSyncError):
    """The indexing provider rejected or failed a request."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 502


class VectorIndexError(ProviderError):
    """Generic failure on a vector store operation."""


class IndexCreationError(VectorIndexError):
    """Creating the remote vector store for a source failed."""

    code = ErrorCode.INDEX_CREATION_ERROR


class IndexAttachError(VectorIndexError):
    """Attaching files to a vector store failed or did not complete."""

    code = ErrorCode.INDEX_ATTACH_ERROR


class FileUploadError(ProviderError):
    """Uploading a document blob to the provider failed."""

    code = ErrorCode.FILE_UPLOAD_ERROR


class AgentSyncError(ProviderError):
    """Updating an agent's remote tool configuration failed."""

    code = ErrorCode.AGENT_SYNC_ERROR


# =========================================================================
# RESPONSES
# =========================================================================

class ErrorDetail(BaseModel):
    """Structured error detail model."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response wrapper."""
    error: ErrorDetail


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized JSON error response.

    Args:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with standardized error format
    """
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_detail.model_dump(exclude_none=True)},
    )


def error_response_for(
    exc: KnowledgeSyncError,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Render a KnowledgeSyncError using its own code and status."""
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details or None,
        correlation_id=correlation_id,
    )


def validation_error(
    message: str,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=400,
        details=details,
        correlation_id=correlation_id,
    )


def internal_error(
    message: str = "Internal server error",
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 500 internal error response.

    Note: Be careful not to expose sensitive internal details to clients.
    """
    return error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        status_code=500,
        correlation_id=correlation_id,
    )
