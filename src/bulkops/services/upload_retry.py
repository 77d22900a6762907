"""Identifier upload with a bounded retry on a not-yet-known export job."""

from uuid import UUID

from src.bulkops.clients.protocols import BulkEditClient
from src.bulkops.core.exceptions import BulkOperationError, NotFoundError
from src.bulkops.core.logging import get_logger
from src.bulkops.schemas.bulk_operation import UploadedFile

logger = get_logger(__name__)

RETRIES_EXHAUSTED_MESSAGE = "Failed to upload file with identifiers: data export job was not found"


async def upload_with_retry(
    client: BulkEditClient, job_id: UUID, file: UploadedFile, max_retry_count: int
) -> str:
    """Upload identifiers, retrying while the job is reported as not found.

    Args:
        client: Bulk edit client to upload through
        job_id: Data export job the identifiers belong to
        file: Identifier file
        max_retry_count: Total number of attempts

    Returns:
        Link returned by the client

    Raises:
        BulkOperationError: If every attempt reported the job as not found
    """
    attempts = 0
    while True:
        try:
            return await client.upload_file(job_id, file)
        except NotFoundError as e:
            attempts += 1
            logger.warning(
                "Data export job not found, retrying upload",
                job_id=str(job_id),
                attempt=attempts,
                max_retry_count=max_retry_count,
            )
            if attempts >= max_retry_count:
                raise BulkOperationError(RETRIES_EXHAUSTED_MESSAGE) from e
