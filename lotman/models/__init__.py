"""
Lotman Models.

Core models for lot-based stock:
- Stock: Per-article stock with its critical threshold
- StockLot: Discrete received quantity with its own expiration and cost
- Movement: Immutable record of a completed consumption
- StockAlert: Low-stock record written when a consumption crosses the threshold
"""

from lotman.models.alert import StockAlert
from lotman.models.enums import LotState, WithdrawalMethod
from lotman.models.lot import StockLot
from lotman.models.movement import Movement
from lotman.models.stock import Stock

__all__ = [
    'LotState',
    'WithdrawalMethod',
    'Stock',
    'StockLot',
    'Movement',
    'StockAlert',
]
