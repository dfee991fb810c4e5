from src.models.base import Base
from src.models.copy_trade import CopyTradeConfig, CopyTradeEvent

__all__ = [
    "Base",
    "CopyTradeConfig",
    "CopyTradeEvent",
]
