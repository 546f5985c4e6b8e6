"""Tests for errors, correlation IDs and logging."""

import json
import logging

from app.shared.correlation import CorrelationContext, generate_correlation_id, get_correlation_id
from app.shared.errors import (
    ErrorCode,
    FileUploadError,
    IndexAttachError,
    KnowledgeSourceNotFoundError,
    KnowledgeSyncError,
    PreviousFileLookupError,
    error_response_for,
)
from app.shared.logging_config import CorrelationIdFilter, JSONFormatter


class TestErrors:

    def test_hierarchy(self):
        assert issubclass(IndexAttachError, KnowledgeSyncError)
        assert PreviousFileLookupError.status_code == 500
        assert FileUploadError.status_code == 502

    def test_not_found_response(self):
        response = error_response_for(KnowledgeSourceNotFoundError("S1"), correlation_id="req-1")

        assert response.status_code == 404
        body = json.loads(response.body)
        assert body["error"]["code"] == ErrorCode.NOT_FOUND.value
        assert body["error"]["details"]["resource_id"] == "S1"
        assert body["error"]["correlation_id"] == "req-1"


class TestCorrelation:

    def test_prefix(self):
        assert generate_correlation_id("migration").startswith("migration-")

    def test_context_sets_and_restores(self):
        assert get_correlation_id() is None
        with CorrelationContext(prefix="migration") as correlation_id:
            assert get_correlation_id() == correlation_id
        assert get_correlation_id() is None


def test_json_formatter_includes_correlation_and_extras():
    record = logging.LogRecord("LinkAI.Test", logging.INFO, __file__, 1, "synced %s", ("T1",), None)
    record.vector_store_id = "vs_1"

    with CorrelationContext(correlation_id="req-9"):
        CorrelationIdFilter().filter(record)

    entry = json.loads(JSONFormatter("linkai-knowledge-sync").format(record))

    assert entry["message"] == "synced T1"
    assert entry["correlation_id"] == "req-9"
    assert entry["vector_store_id"] == "vs_1"
    assert entry["service"] == "linkai-knowledge-sync"
