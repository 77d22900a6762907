"""Identifier upload client of the bulk edit module."""

from uuid import UUID

import httpx

from src.bulkops.core.exceptions import NotFoundError
from src.bulkops.schemas.bulk_operation import UploadedFile


class HttpBulkEditClient:
    """Uploads identifier files for data export jobs."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def upload_file(self, job_id: UUID, file: UploadedFile) -> str:
        """Upload identifiers and return the stored file link.

        Raises:
            NotFoundError: If the job is not known to the bulk edit module yet
            httpx.HTTPStatusError: For any other unsuccessful response
        """
        response = await self.client.post(
            f"/bulk-edit/{job_id}/upload",
            files={"file": (file.filename, file.content, file.content_type)},
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(f"Data export job was not found by id={job_id}")
        response.raise_for_status()
        return response.text
