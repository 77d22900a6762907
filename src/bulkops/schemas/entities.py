"""Entity row variants and their CSV layouts.

Each entity type edited by bulk operations maps to exactly one row variant.
Rows keep the downstream JSON shape (camelCase keys, unknown fields
preserved) and declare the columns of their CSV preview.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.bulkops.core.exceptions import ConverterError
from src.bulkops.models.enums import EntityType, IdentifierType

LIST_SEPARATOR = " | "


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict | list):
        raise TypeError(f"expected a single value, got {type(value).__name__}")
    return str(value)


def _parse_text(cell: str) -> str:
    return cell


def _boolean(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, bool):
        raise ValueError(f"not a boolean: {value!r}")
    return "true" if value else "false"


def _parse_boolean(cell: str) -> bool:
    lowered = cell.strip().lower()
    if lowered not in ("true", "false"):
        raise ValueError(f"not a boolean: {cell!r}")
    return lowered == "true"


def _date(value: Any) -> str:
    if value is None:
        return ""
    # Downstream dates are ISO-8601 strings; anything else cannot be rendered
    datetime.fromisoformat(str(value))
    return str(value)


def _parse_date(cell: str) -> str:
    cell = cell.strip()
    datetime.fromisoformat(cell)
    return cell


def _string_list(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"list item is not text: {item!r}")
    return LIST_SEPARATOR.join(value)


def _parse_string_list(cell: str) -> list[str]:
    return [part.strip() for part in cell.split("|") if part.strip()]


@dataclass(frozen=True)
class CsvColumn:
    """One CSV column: header text, dotted field path and converters."""

    header: str
    field: str
    to_csv: Callable[[Any], str] = _text
    from_csv: Callable[[str], Any] = _parse_text


def _get_path(obj: Any, path: str) -> Any:
    value = obj
    for part in path.split("."):
        if value is None:
            return None
        value = getattr(value, part, None)
    return value


def _set_path(data: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    target = data
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


class CamelRecord(BaseModel):
    """Downstream record fragment: camelCase JSON, unknown keys preserved."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class EntityRow(CamelRecord):
    """Base class of the entity row variants."""

    csv_columns: ClassVar[tuple[CsvColumn, ...]] = ()
    identifier_fields: ClassVar[dict[IdentifierType, str]] = {}

    id: str | None = None

    @classmethod
    def csv_headers(cls) -> list[str]:
        return [column.header for column in cls.csv_columns]

    @classmethod
    def from_csv_cells(cls, cells: list[str]) -> Self:
        """Build a row from one CSV record.

        Raises:
            ConverterError: If a cell cannot be converted to its field
            ValueError: If the number of cells does not match the columns
        """
        if len(cells) != len(cls.csv_columns):
            raise ValueError(
                "Number of data fields does not match number of headers: "
                f"expected {len(cls.csv_columns)}, got {len(cells)}"
            )
        data: dict[str, Any] = {}
        for column, cell in zip(cls.csv_columns, cells, strict=True):
            if cell == "":
                continue
            try:
                value = column.from_csv(cell)
            except (TypeError, ValueError) as e:
                raise ConverterError(column.header, str(e)) from e
            _set_path(data, column.field, value)
        return cls.model_validate(data)

    def field_value(self, path: str) -> Any:
        """Value at a dotted field path, None when any part is missing."""
        return _get_path(self, path)

    def get_identifier(self, identifier_type: IdentifierType) -> str:
        """Identifier of this record for the given identifier type."""
        value = self.field_value(self.identifier_fields.get(identifier_type, "id"))
        if isinstance(value, list):
            return ",".join(str(item) for item in value)
        return "" if value is None else str(value)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class UserPersonal(CamelRecord):
    last_name: str | None = None
    first_name: str | None = None
    email: str | None = None
    phone: str | None = None


class UserRow(EntityRow):
    username: str | None = None
    external_system_id: str | None = None
    barcode: str | None = None
    active: bool | None = None
    type: str | None = None
    patron_group: str | None = None
    departments: list[str] | None = None
    enrollment_date: str | None = None
    expiration_date: str | None = None
    personal: UserPersonal | None = None

    csv_columns = (
        CsvColumn("User name", "username"),
        CsvColumn("User id", "id"),
        CsvColumn("External system id", "external_system_id"),
        CsvColumn("Barcode", "barcode"),
        CsvColumn("Active", "active", _boolean, _parse_boolean),
        CsvColumn("Type", "type"),
        CsvColumn("Patron group", "patron_group"),
        CsvColumn("Departments", "departments", _string_list, _parse_string_list),
        CsvColumn("Last name", "personal.last_name"),
        CsvColumn("First name", "personal.first_name"),
        CsvColumn("Email", "personal.email"),
        CsvColumn("Phone", "personal.phone"),
        CsvColumn("Enrollment date", "enrollment_date", _date, _parse_date),
        CsvColumn("Expiration date", "expiration_date", _date, _parse_date),
    )
    identifier_fields = {
        IdentifierType.ID: "id",
        IdentifierType.BARCODE: "barcode",
        IdentifierType.USER_NAME: "username",
        IdentifierType.EXTERNAL_SYSTEM_ID: "external_system_id",
    }


class ItemStatus(CamelRecord):
    name: str | None = None
    date: str | None = None


class ItemRow(EntityRow):
    hrid: str | None = None
    barcode: str | None = None
    holdings_record_id: str | None = None
    accession_number: str | None = None
    former_ids: list[str] | None = None
    discovery_suppress: bool | None = None
    status: ItemStatus | None = None
    material_type_id: str | None = None
    permanent_loan_type_id: str | None = None
    permanent_location_id: str | None = None
    temporary_location_id: str | None = None
    item_level_call_number: str | None = None
    copy_number: str | None = None

    csv_columns = (
        CsvColumn("Item UUID", "id"),
        CsvColumn("Item HRID", "hrid"),
        CsvColumn("Barcode", "barcode"),
        CsvColumn("Holdings UUID", "holdings_record_id"),
        CsvColumn("Accession number", "accession_number"),
        CsvColumn("Former identifier", "former_ids", _string_list, _parse_string_list),
        CsvColumn("Suppress from discovery", "discovery_suppress", _boolean, _parse_boolean),
        CsvColumn("Status", "status.name"),
        CsvColumn("Material type", "material_type_id"),
        CsvColumn("Permanent loan type", "permanent_loan_type_id"),
        CsvColumn("Item permanent location", "permanent_location_id"),
        CsvColumn("Item temporary location", "temporary_location_id"),
        CsvColumn("Item level call number", "item_level_call_number"),
        CsvColumn("Copy number", "copy_number"),
    )
    identifier_fields = {
        IdentifierType.ID: "id",
        IdentifierType.HRID: "hrid",
        IdentifierType.BARCODE: "barcode",
        IdentifierType.FORMER_IDS: "former_ids",
        IdentifierType.ACCESSION_NUMBER: "accession_number",
        IdentifierType.HOLDINGS_RECORD_ID: "holdings_record_id",
    }


class HoldingsRecordRow(EntityRow):
    hrid: str | None = None
    instance_id: str | None = None
    former_ids: list[str] | None = None
    discovery_suppress: bool | None = None
    holdings_type_id: str | None = None
    permanent_location_id: str | None = None
    temporary_location_id: str | None = None
    call_number_prefix: str | None = None
    call_number: str | None = None
    call_number_suffix: str | None = None
    statistical_code_ids: list[str] | None = None

    csv_columns = (
        CsvColumn("Holdings UUID", "id"),
        CsvColumn("Holdings HRID", "hrid"),
        CsvColumn("Instance UUID", "instance_id"),
        CsvColumn("Former holdings Id", "former_ids", _string_list, _parse_string_list),
        CsvColumn("Suppress from discovery", "discovery_suppress", _boolean, _parse_boolean),
        CsvColumn("Holdings type", "holdings_type_id"),
        CsvColumn("Permanent location", "permanent_location_id"),
        CsvColumn("Temporary location", "temporary_location_id"),
        CsvColumn("Call number prefix", "call_number_prefix"),
        CsvColumn("Call number", "call_number"),
        CsvColumn("Call number suffix", "call_number_suffix"),
        CsvColumn("Statistical codes", "statistical_code_ids", _string_list, _parse_string_list),
    )
    identifier_fields = {
        IdentifierType.ID: "id",
        IdentifierType.HRID: "hrid",
        IdentifierType.FORMER_IDS: "former_ids",
        IdentifierType.INSTANCE_HRID: "instance_id",
    }


class InstanceRow(EntityRow):
    hrid: str | None = None
    title: str | None = None
    source: str | None = None
    staff_suppress: bool | None = None
    discovery_suppress: bool | None = None
    previously_held: bool | None = None
    instance_type_id: str | None = None
    mode_of_issuance_id: str | None = None
    instance_format_ids: list[str] | None = None
    statistical_code_ids: list[str] | None = None

    csv_columns = (
        CsvColumn("Instance UUID", "id"),
        CsvColumn("Instance HRID", "hrid"),
        CsvColumn("Resource title", "title"),
        CsvColumn("Source", "source"),
        CsvColumn("Staff suppress", "staff_suppress", _boolean, _parse_boolean),
        CsvColumn("Suppress from discovery", "discovery_suppress", _boolean, _parse_boolean),
        CsvColumn("Previously held", "previously_held", _boolean, _parse_boolean),
        CsvColumn("Resource type", "instance_type_id"),
        CsvColumn("Mode of issuance", "mode_of_issuance_id"),
        CsvColumn("Formats", "instance_format_ids", _string_list, _parse_string_list),
        CsvColumn("Statistical codes", "statistical_code_ids", _string_list, _parse_string_list),
    )
    identifier_fields = {
        IdentifierType.ID: "id",
        IdentifierType.HRID: "hrid",
    }


ROW_TYPES: dict[EntityType, type[EntityRow]] = {
    EntityType.USER: UserRow,
    EntityType.ITEM: ItemRow,
    EntityType.HOLDINGS_RECORD: HoldingsRecordRow,
    EntityType.INSTANCE: InstanceRow,
}


def resolve_entity_class(entity_type: EntityType) -> type[EntityRow]:
    """Row variant for an entity type."""
    return ROW_TYPES[entity_type]


def identifier_for_manual_approach(
    cells: list[str], identifier_type: IdentifierType, row_type: type[EntityRow]
) -> str:
    """Identifier of a CSV line that could not be decoded into a row.

    Uses the column holding the identifier type's field, else the first cell.
    """
    field = row_type.identifier_fields.get(identifier_type, "id")
    for index, column in enumerate(row_type.csv_columns):
        if column.field == field and index < len(cells):
            return cells[index]
    return cells[0] if cells else ""
