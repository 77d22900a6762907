"""Removal of the artifact files an operation has produced."""

from src.bulkops.clients.protocols import RemoteFileSystem
from src.bulkops.core.logging import get_logger
from src.bulkops.models import BulkOperation

logger = get_logger(__name__)


class StorageLogFilesService:
    """Deletes operation files from the artifact store and unlinks them."""

    def __init__(self, file_system: RemoteFileSystem):
        self.file_system = file_system

    async def remove_modified_files(self, operation: BulkOperation) -> None:
        links = [
            link
            for link in (
                operation.link_to_modified_records_csv_file,
                operation.link_to_modified_records_json_file,
            )
            if link
        ]
        await self.file_system.remove(*links)
        operation.link_to_modified_records_csv_file = None
        operation.link_to_modified_records_json_file = None
        logger.info("Modified files removed", operation_id=str(operation.id), count=len(links))

    async def remove_triggering_and_matched_records_files(self, operation: BulkOperation) -> None:
        links = [
            link
            for link in (
                operation.link_to_triggering_csv_file,
                operation.link_to_matched_records_json_file,
            )
            if link
        ]
        await self.file_system.remove(*links)
        operation.link_to_triggering_csv_file = None
        operation.link_to_matched_records_json_file = None
        logger.info(
            "Triggering and matched files removed", operation_id=str(operation.id), count=len(links)
        )
