import logging
from typing import Optional

from fastapi import APIRouter

from app.api.dependencies import get_migration_runner
from app.api.models import MigrationRequest
from app.features.knowledge.models import MigrationReport

router = APIRouter(prefix="/migrations", tags=["Migrations"])
logger = logging.getLogger("LinkAI.API.Migrations")


@router.post("/vector-index", response_model=MigrationReport)
async def run_vector_index_migration(request: Optional[MigrationRequest] = None):
    """
    Backfill vector stores for every knowledge source.

    Safe to call repeatedly; only missing work is redone.
    """
    run_id = request.run_id if request else None
    report = await get_migration_runner().run(run_id=run_id)
    if report.failed:
        logger.warning(f"Migration {report.run_id} finished with {len(report.failed)} failed sources")
    return report
