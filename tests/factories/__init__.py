"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import BulkOperationFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.bulk_operation import (
    BulkOperationFactory,
    DataProcessingFactory,
    ExecutionFactory,
)

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Bulk operation
    "BulkOperationFactory",
    "DataProcessingFactory",
    "ExecutionFactory",
]
