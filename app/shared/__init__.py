# Shared errors, correlation and logging utilities
from .correlation import CorrelationContext, CorrelationMiddleware, get_correlation_id
from .errors import ErrorCode, KnowledgeSyncError, error_response_for
from .logging_config import setup_logging

__all__ = [
    "CorrelationContext",
    "CorrelationMiddleware",
    "get_correlation_id",
    "ErrorCode",
    "KnowledgeSyncError",
    "error_response_for",
    "setup_logging",
]
