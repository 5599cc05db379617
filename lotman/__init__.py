"""
Django Lotman — lot-based stock consumption.

Tracks the lots received for each stock and withdraws from them
FIFO, FEFO or by manual selection.

Usage:
    from lotman import lots, LotError

    lots.receive(stock, 50, date_expiration=expiry)
    lots.consume(stock, 7, 'fifo')
    lots.list_available(stock)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'lots':
        from lotman.service import Lots
        return Lots
    elif name == 'LotError':
        from lotman.exceptions import LotError
        return LotError
    elif name == 'Stock':
        from lotman.models.stock import Stock
        return Stock
    elif name == 'StockLot':
        from lotman.models.lot import StockLot
        return StockLot
    elif name == 'Movement':
        from lotman.models.movement import Movement
        return Movement
    elif name == 'StockAlert':
        from lotman.models.alert import StockAlert
        return StockAlert
    elif name == 'LotState':
        from lotman.models.enums import LotState
        return LotState
    elif name == 'WithdrawalMethod':
        from lotman.models.enums import WithdrawalMethod
        return WithdrawalMethod
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'lots',
    'LotError',
    'Stock',
    'StockLot',
    'Movement',
    'StockAlert',
    'LotState',
    'WithdrawalMethod',
]

__version__ = '0.1.0'
