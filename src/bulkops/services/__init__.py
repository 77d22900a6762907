from src.bulkops.services.bulk_operation_service import BulkOperationService
from src.bulkops.services.stage_workers import StageWorkers

__all__ = ["BulkOperationService", "StageWorkers"]
