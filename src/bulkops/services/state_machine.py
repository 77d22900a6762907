"""Bulk operation lifecycle: legal status moves and step preconditions."""

from src.bulkops.core.exceptions import BadRequestError, IllegalOperationStateError
from src.bulkops.models import BulkOperation, BulkOperationStep, OperationStatusType
from src.bulkops.models.base import utc_now

S = OperationStatusType

ALLOWED_TRANSITIONS: dict[OperationStatusType, frozenset[OperationStatusType]] = {
    S.NEW: frozenset({S.RETRIEVING_RECORDS, S.FAILED}),
    S.EXECUTING_QUERY: frozenset({S.SAVED_IDENTIFIERS, S.FAILED}),
    S.SAVED_IDENTIFIERS: frozenset({S.RETRIEVING_RECORDS, S.FAILED}),
    S.RETRIEVING_RECORDS: frozenset({S.SAVING_RECORDS_LOCALLY, S.DATA_MODIFICATION, S.FAILED}),
    S.SAVING_RECORDS_LOCALLY: frozenset({S.DATA_MODIFICATION, S.FAILED}),
    S.DATA_MODIFICATION: frozenset({S.DATA_MODIFICATION, S.REVIEW_CHANGES, S.FAILED}),
    S.REVIEW_CHANGES: frozenset(
        {S.DATA_MODIFICATION, S.REVIEW_CHANGES, S.APPLY_CHANGES, S.FAILED}
    ),
    S.APPLY_CHANGES: frozenset({S.COMPLETED, S.COMPLETED_WITH_ERRORS, S.FAILED}),
    S.COMPLETED: frozenset(),
    S.COMPLETED_WITH_ERRORS: frozenset(),
    S.FAILED: frozenset(),
}

STEP_PRECONDITIONS: dict[BulkOperationStep, frozenset[OperationStatusType]] = {
    BulkOperationStep.UPLOAD: frozenset({S.NEW, S.SAVED_IDENTIFIERS}),
    BulkOperationStep.EDIT: frozenset({S.DATA_MODIFICATION, S.REVIEW_CHANGES}),
    BulkOperationStep.COMMIT: frozenset({S.REVIEW_CHANGES}),
}

# Cancelling removes the triggering and matched files
CANCELLABLE_STATUSES = frozenset({S.NEW, S.RETRIEVING_RECORDS, S.SAVING_RECORDS_LOCALLY})
# Cancelling removes the modified files, manual approach only
MANUAL_CANCELLABLE_STATUSES = frozenset({S.DATA_MODIFICATION, S.REVIEW_CHANGES})


def can_transition(old: OperationStatusType, new: OperationStatusType) -> bool:
    return new in ALLOWED_TRANSITIONS[old]


def transition(operation: BulkOperation, status: OperationStatusType) -> None:
    """Move the operation to status.

    Raises:
        IllegalOperationStateError: If the move is not in ALLOWED_TRANSITIONS
    """
    if not can_transition(operation.status, status):
        raise IllegalOperationStateError(
            f"Bulk operation cannot move from status {operation.status.value} to {status.value}"
        )
    operation.status = status


def fail(operation: BulkOperation, error_message: str) -> None:
    """Mark the operation FAILED with an error message and end time."""
    transition(operation, S.FAILED)
    operation.error_message = error_message
    operation.end_time = utc_now()


def ensure_step_applicable(step: BulkOperationStep, status: OperationStatusType) -> None:
    """Raises BadRequestError if step cannot start from status."""
    if status not in STEP_PRECONDITIONS[step]:
        raise BadRequestError(
            f"Step {step.value} is not applicable for bulk operation status {status.value}"
        )
