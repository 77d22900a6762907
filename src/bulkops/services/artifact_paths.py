"""Names of the files a bulk operation produces.

Every path is rooted at the operation id and depends only on the id and the
calendar day, so rerunning a stage on the same day overwrites its files.
"""

from datetime import date
from uuid import UUID


def triggering_csv_path(operation_id: UUID, original_filename: str) -> str:
    return f"{operation_id}/{original_filename}"


def modified_csv_path(operation_id: UUID, day: date) -> str:
    return f"{operation_id}/{operation_id}-Updates-Preview-{day.isoformat()}.csv"


def modified_json_path(operation_id: UUID, day: date) -> str:
    return f"{operation_id}/json/{operation_id}-Updates-Preview-{day.isoformat()}.json"


def committed_csv_path(operation_id: UUID, day: date) -> str:
    return f"{operation_id}/{operation_id}-Changed-Records-{day.isoformat()}.csv"


def committed_json_path(operation_id: UUID, day: date) -> str:
    return f"{operation_id}/json/{operation_id}-Changed-Records-{day.isoformat()}.json"
