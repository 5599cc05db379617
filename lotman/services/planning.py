"""
Allocation planning — which lots a withdrawal draws from.

Planning only reads. It may run against a stale read: every line records
the quantity_remaining it saw, and the consumption executor re-checks it.

Usage:
    plan = lots.plan(stock, 7, 'fifo')
    plan.lines  # (AllocationLine(lot_id=1, quantity=5, ...), AllocationLine(lot_id=2, quantity=2, ...))
"""

from dataclasses import dataclass
from datetime import datetime

from lotman.conf import lotman_settings
from lotman.exceptions import LotError
from lotman.models.enums import WithdrawalMethod
from lotman.models.lot import StockLot
from lotman.models.stock import Stock
from lotman.services.lots import positive_quantity
from lotman.services.queries import LotQueries


@dataclass(frozen=True)
class AllocationLine:
    """Quantity drawn from one lot."""

    lot_id: int
    lot_code: str
    quantity: int
    expected_remaining: int  # quantity_remaining seen while planning


@dataclass(frozen=True)
class AllocationPlan:
    """Ordered (lot, quantity) pairs satisfying one withdrawal."""

    stock_id: int
    quantity: int
    method: str
    lines: tuple[AllocationLine, ...]

    @property
    def total(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def lot_ids(self) -> list[int]:
        return [line.lot_id for line in self.lines]

    def as_pairs(self) -> list[dict]:
        return [{'lot_id': line.lot_id, 'quantity': line.quantity} for line in self.lines]


def _parse_manual_lots(manual_lots) -> list[tuple]:
    """Accept [{'lot_id': 1, 'quantity': 2}, ...] or [(1, 2), ...]."""
    pairs = []
    for entry in manual_lots or []:
        if isinstance(entry, dict):
            pairs.append((entry.get('lot_id'), entry.get('quantity')))
        else:
            lot_id, quantity = entry
            pairs.append((lot_id, quantity))
    return pairs


class AllocationPlanner:
    """Withdrawal planning methods (FIFO, FEFO, manual)."""

    @classmethod
    def plan(cls, stock: Stock, quantity, method: str | None = None,
             manual_lots=None, now: datetime | None = None) -> AllocationPlan:
        """
        Plan a withdrawal of ``quantity`` units from ``stock``.

        FIFO/FEFO draw greedily from the eligible lots in order; manual
        uses the caller's (lot_id, quantity) pairs verbatim.

        Raises:
            LotError('INVALID_METHOD'): Unknown method
            LotError('INVALID_QUANTITY'): quantity not a positive integer
            LotError('INSUFFICIENT_STOCK'): Not enough eligible stock
            LotError('DUPLICATE_LOT_REFERENCE'), LotError('LOT_NOT_FOUND'),
            LotError('LOT_NOT_IN_STOCK'), LotError('ALLOCATION_MISMATCH'):
                Manual selection errors
        """
        method = method or lotman_settings.DEFAULT_METHOD
        if method not in WithdrawalMethod.values:
            raise LotError('INVALID_METHOD', method=method, expected=list(WithdrawalMethod.values))
        method = WithdrawalMethod(method).value

        quantity = positive_quantity(quantity)

        if method == WithdrawalMethod.MANUAL:
            return cls._plan_manual(stock, quantity, manual_lots)
        return cls._plan_greedy(stock, quantity, method, now)

    @classmethod
    def _plan_greedy(cls, stock: Stock, quantity: int, method: str,
                     now: datetime | None) -> AllocationPlan:
        candidates = list(LotQueries.eligible_lots(stock, method, now))

        available = sum(lot.quantity_remaining for lot in candidates)
        if available < quantity:
            raise LotError(
                'INSUFFICIENT_STOCK',
                stock_id=stock.pk,
                available=available,
                requested=quantity,
            )

        lines = []
        missing = quantity
        for lot in candidates:
            if missing <= 0:
                break
            take = min(missing, lot.quantity_remaining)
            lines.append(AllocationLine(
                lot_id=lot.pk,
                lot_code=lot.code,
                quantity=take,
                expected_remaining=lot.quantity_remaining,
            ))
            missing -= take

        return AllocationPlan(
            stock_id=stock.pk,
            quantity=quantity,
            method=method,
            lines=tuple(lines),
        )

    @classmethod
    def _plan_manual(cls, stock: Stock, quantity: int, manual_lots) -> AllocationPlan:
        pairs = _parse_manual_lots(manual_lots)
        if not pairs:
            raise LotError('ALLOCATION_MISMATCH', requested=quantity, allocated=0)

        seen = set()
        for lot_id, _ in pairs:
            # True == 1 would otherwise match lot pk 1
            if isinstance(lot_id, bool) or not isinstance(lot_id, int):
                raise LotError('LOT_NOT_FOUND', lot_id=lot_id)
            if lot_id in seen:
                raise LotError('DUPLICATE_LOT_REFERENCE', lot_id=lot_id)
            seen.add(lot_id)

        try:
            found = StockLot.objects.in_bulk([lot_id for lot_id, _ in pairs])
        except (ValueError, TypeError):
            found = {}

        lines = []
        for lot_id, lot_quantity in pairs:
            lot = found.get(lot_id)
            if lot is None or lot.is_deleted:
                raise LotError('LOT_NOT_FOUND', lot_id=lot_id)
            if lot.stock_id != stock.pk:
                raise LotError('LOT_NOT_IN_STOCK', lot_id=lot_id, stock_id=stock.pk)

            lot_quantity = positive_quantity(lot_quantity, field=f'manual_lots[{lot_id}]')
            if lot.quantity_remaining < lot_quantity:
                raise LotError(
                    'INSUFFICIENT_STOCK',
                    lot_id=lot_id,
                    available=lot.quantity_remaining,
                    requested=lot_quantity,
                )

            lines.append(AllocationLine(
                lot_id=lot.pk,
                lot_code=lot.code,
                quantity=lot_quantity,
                expected_remaining=lot.quantity_remaining,
            ))

        allocated = sum(line.quantity for line in lines)
        if allocated != quantity:
            raise LotError(
                'ALLOCATION_MISMATCH',
                f"Manual allocation totals {allocated}, requested {quantity}",
                requested=quantity,
                allocated=allocated,
            )

        return AllocationPlan(
            stock_id=stock.pk,
            quantity=quantity,
            method=WithdrawalMethod.MANUAL.value,
            lines=tuple(lines),
        )
