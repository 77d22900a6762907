"""Data export job client."""

from uuid import UUID

import httpx

from src.bulkops.core.logging import get_logger
from src.bulkops.schemas.bulk_operation import Job

logger = get_logger(__name__)


class HttpDataExportClient:
    """Creates and reads data export jobs over HTTP."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def upsert_job(self, job: Job) -> Job:
        response = await self.client.post(
            "/data-export-spring/jobs",
            json=job.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        response.raise_for_status()
        created = Job.model_validate(response.json())
        logger.info("Data export job upserted", job_id=str(created.id), status=created.status)
        return created

    async def get_job(self, job_id: UUID) -> Job:
        response = await self.client.get(f"/data-export-spring/jobs/{job_id}")
        response.raise_for_status()
        return Job.model_validate(response.json())
