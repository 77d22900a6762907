"""Test helper functions for common data creation patterns."""

from datetime import date
from pathlib import Path

from src.bulkops.clients.local_storage import LocalFileSystem
from src.bulkops.codecs.csv_stream import format_csv_line
from src.bulkops.models import BulkOperation
from src.bulkops.schemas.entities import UserRow

TODAY = date(2026, 3, 14)


def make_users(*usernames: str) -> list[UserRow]:
    """Build users whose id is derived from the username."""
    return [
        UserRow(
            id=f"user-{name}",
            username=name,
            barcode=f"bc-{name}",
            active=True,
            patron_group="staff",
            departments=["Circulation"],
            personal={"last_name": name.title(), "email": f"{name}@example.com"},
        )
        for name in usernames
    ]


def json_lines(rows: list[UserRow], trailing_newline: bool = True) -> str:
    text = "\n".join(row.to_json() for row in rows)
    return text + "\n" if trailing_newline else text


async def seed_matched_records(
    file_system: LocalFileSystem, operation: BulkOperation, rows: list[UserRow]
) -> str:
    """Store rows as the matched records file of the operation and link it."""
    path = f"{operation.id}/json/matched-records.json"
    await file_system.put(json_lines(rows).encode(), path)
    operation.link_to_matched_records_json_file = path
    return path


async def seed_modified_records(
    file_system: LocalFileSystem, operation: BulkOperation, rows: list[UserRow]
) -> str:
    path = f"{operation.id}/json/modified-records.json"
    await file_system.put(json_lines(rows).encode(), path)
    operation.link_to_modified_records_json_file = path
    return path


def read_artifact(storage_path: Path, link: str) -> str:
    return (storage_path / link).read_text(encoding="utf-8")


def csv_text(rows: list[UserRow]) -> str:
    """Preview CSV of rows, header included."""
    lines = [format_csv_line(UserRow.csv_headers())]
    for row in rows:
        lines.append(
            format_csv_line(
                [column.to_csv(row.field_value(column.field)) for column in row.csv_columns]
            )
        )
    return "".join(lines)
