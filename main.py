import logging

from fastapi import FastAPI, Request

from app.api.endpoints import router
from app.core.config import settings
from app.shared.correlation import CorrelationMiddleware, get_correlation_id
from app.shared.errors import KnowledgeSyncError, error_response_for, internal_error
from app.shared.logging_config import setup_logging

# Configure logging
setup_logging(settings.SERVICE_NAME)
logger = logging.getLogger("LinkAI.API")

app = FastAPI(
    title="LinkAI Knowledge Sync Service",
    description="Keeps knowledge source vector stores and agents in sync with their content",
    version="1.0.0"
)

app.add_middleware(CorrelationMiddleware)


@app.exception_handler(KnowledgeSyncError)
async def knowledge_sync_error_handler(request: Request, exc: KnowledgeSyncError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response_for(exc, correlation_id=get_correlation_id())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return internal_error(correlation_id=get_correlation_id())


app.include_router(router, prefix="/api/v1")

@app.get("/")
async def root():
    return {"message": "LinkAI Knowledge Sync Service Running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
