"""Shared enums for models."""

from enum import Enum


class EntityType(str, Enum):
    """Kind of record a bulk operation edits."""

    USER = "USER"
    ITEM = "ITEM"
    HOLDINGS_RECORD = "HOLDINGS_RECORD"
    INSTANCE = "INSTANCE"


class IdentifierType(str, Enum):
    """Identifier the triggering file lists records by."""

    ID = "ID"
    BARCODE = "BARCODE"
    HRID = "HRID"
    FORMER_IDS = "FORMER_IDS"
    ACCESSION_NUMBER = "ACCESSION_NUMBER"
    HOLDINGS_RECORD_ID = "HOLDINGS_RECORD_ID"
    USER_NAME = "USER_NAME"
    EXTERNAL_SYSTEM_ID = "EXTERNAL_SYSTEM_ID"
    INSTANCE_HRID = "INSTANCE_HRID"
    ITEM_BARCODE = "ITEM_BARCODE"


class ApproachType(str, Enum):
    """How modified records enter the pipeline."""

    MANUAL = "MANUAL"
    IN_APP = "IN_APP"
    QUERY = "QUERY"


class OperationStatusType(str, Enum):
    """Bulk operation lifecycle status."""

    NEW = "NEW"
    EXECUTING_QUERY = "EXECUTING_QUERY"
    SAVED_IDENTIFIERS = "SAVED_IDENTIFIERS"
    RETRIEVING_RECORDS = "RETRIEVING_RECORDS"
    SAVING_RECORDS_LOCALLY = "SAVING_RECORDS_LOCALLY"
    DATA_MODIFICATION = "DATA_MODIFICATION"
    REVIEW_CHANGES = "REVIEW_CHANGES"
    APPLY_CHANGES = "APPLY_CHANGES"
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    FAILED = "FAILED"


class StatusType(str, Enum):
    """Status of a data processing or execution progress row."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class BulkOperationStep(str, Enum):
    """Step an operator asks the bulk operation to start."""

    UPLOAD = "UPLOAD"
    EDIT = "EDIT"
    COMMIT = "COMMIT"


class JobStatus(str, Enum):
    """Data export job status."""

    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    FAILED_WITH_ERRORS = "FAILED_WITH_ERRORS"
    CANCELLED = "CANCELLED"


class ExportType(str, Enum):
    """Data export job type."""

    BULK_EDIT_IDENTIFIERS = "BULK_EDIT_IDENTIFIERS"
    BULK_EDIT_QUERY = "BULK_EDIT_QUERY"
    BULK_EDIT_UPDATE = "BULK_EDIT_UPDATE"
