"""
Lots Service — The single public interface for all lot operations.

Usage:
    from lotman import lots, LotError

    stock = lots.open_stock(article, critical_threshold=10)
    lots.receive(stock, 50, date_expiration=date(2027, 3, 1))
    lots.list_available(stock)        # annotated with expiration flags
    movement = lots.consume(stock, 7, 'fefo', motif='Exam run')
    movement.summary()                # {'method': 'fefo', 'total_consumed': 7, ...}

The operations are grouped in lotman.services; this class only
composes them:

- LotQueries:          get_stock, list_available, eligible_lots, overview, ...
- LotStore:            open_stock, receive, update, soft_delete, restore, hard_delete
- AllocationPlanner:   plan
- ConsumptionExecutor: execute, consume
"""

from lotman.services import (
    AllocationPlanner,
    ConsumptionExecutor,
    LotQueries,
    LotStore,
)


class Lots(LotQueries, LotStore, AllocationPlanner, ConsumptionExecutor):
    """
    Single interface for all lot operations.

    Parameter convention: (stock, quantity, method, ...)
    Follows natural language: "Consume 7 from the stock, FEFO"

    IMPORTANT: All state-changing methods use atomic transactions.
    See each method's docstring.
    """
