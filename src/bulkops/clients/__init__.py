"""Downstream collaborators: protocols and concrete clients."""

from src.bulkops.clients.bulk_edit import HttpBulkEditClient
from src.bulkops.clients.data_export import HttpDataExportClient
from src.bulkops.clients.http import close_http_client, get_http_client
from src.bulkops.clients.local_storage import LocalFileSystem
from src.bulkops.clients.log_files import StorageLogFilesService

__all__ = [
    "HttpBulkEditClient",
    "HttpDataExportClient",
    "LocalFileSystem",
    "StorageLogFilesService",
    "close_http_client",
    "get_http_client",
]
