from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ExpirationUpdateRequest(BaseModel):
    days: int = Field(..., ge=1, le=365, description="Days after last activity before the store expires")


class IndexStatusResponse(BaseModel):
    source_id: str
    vector_store_id: Optional[str] = None
    vector_store_updated_at: Optional[datetime] = None
    remote: Optional[Dict[str, Any]] = None


class MigrationRequest(BaseModel):
    run_id: Optional[str] = Field(None, description="Correlation id for the run; generated when omitted")
