# Services module

from stockroom.services.ledger import (
    InsufficientStockError,
    ItemNotInTeamError,
    StockLedger,
    StockReconciliation,
    replay_stock,
)
from stockroom.services.result import Err, Ok, ServiceError, ServiceResult

__all__ = [
    "InsufficientStockError",
    "ItemNotInTeamError",
    "StockLedger",
    "StockReconciliation",
    "replay_stock",
    "Err",
    "Ok",
    "ServiceError",
    "ServiceResult",
]
