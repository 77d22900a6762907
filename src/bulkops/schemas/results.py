"""Per-record outcomes of the stage loops."""

from dataclasses import dataclass

from src.bulkops.schemas.entities import EntityRow


@dataclass(frozen=True)
class Applied:
    """The downstream store accepted the modified record."""

    row: EntityRow


@dataclass(frozen=True)
class Unchanged:
    """Nothing needed to be written for the record."""


@dataclass(frozen=True)
class ConverterFailure:
    """A field could not be converted to its CSV form."""

    field: str
    message: str

    @property
    def error_message(self) -> str:
        return f'Field "{self.field}": {self.message}'


@dataclass(frozen=True)
class OptimisticLockingFailure:
    """The record changed downstream since it was fetched."""

    csv_message: str
    ui_message: str
    link_to_failed_entity: str | None = None


@dataclass(frozen=True)
class OtherFailure:
    message: str


type CommitResult = Applied | Unchanged | OptimisticLockingFailure | OtherFailure
