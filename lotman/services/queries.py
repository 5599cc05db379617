"""
Stock queries — read-only operations over a stock's lots.

All methods are classmethods on Lots and use no locking.
"""

from datetime import datetime
from decimal import Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce

from lotman import clock
from lotman.adapters.category import alert_window_for
from lotman.conf import lotman_settings
from lotman.exceptions import LotError
from lotman.expiration import (
    classify,
    days_until_expiration,
    filter_expired,
    filter_near_expiration,
    filter_not_expired,
    urgency,
)
from lotman.models.enums import WithdrawalMethod
from lotman.models.lot import StockLot
from lotman.models.stock import Stock


class LotQueries:
    """Read-only stock/lot query methods."""

    @classmethod
    def get_stock(cls, stock_id) -> Stock:
        """
        Fetch a stock by id.

        Raises:
            LotError('STOCK_NOT_FOUND'): If missing
        """
        try:
            return Stock.objects.get(pk=stock_id)
        except (Stock.DoesNotExist, ValueError, TypeError):
            raise LotError('STOCK_NOT_FOUND', stock_id=stock_id)

    @classmethod
    def alert_window(cls, stock: Stock) -> int:
        """Near-expiration window of the stock's article category."""
        return alert_window_for(stock.article)

    @classmethod
    def total_remaining(cls, stock: Stock) -> int:
        """Sum of quantity_remaining over the stock's active lots."""
        return StockLot.objects.for_stock(stock).active().aggregate(
            t=Coalesce(Sum('quantity_remaining'), 0)
        )['t']

    @classmethod
    def list_available(cls, stock: Stock, now: datetime | None = None) -> list[StockLot]:
        """
        Lots with stock left, oldest entry first.

        Each lot carries is_expired, is_near_expiration and
        days_until_expiration attributes computed at ``now``.
        """
        moment = now or clock.now()
        window = cls.alert_window(stock)
        lots = list(StockLot.objects.for_stock(stock).available().fifo_order())
        for lot in lots:
            cls._annotate(lot, moment, window)
        return lots

    @classmethod
    def eligible_lots(cls, stock: Stock, method: str = WithdrawalMethod.FIFO,
                      now: datetime | None = None):
        """
        Candidate lots for an automatic withdrawal, in draw order.

        Expired lots are left out unless ALLOW_EXPIRED_CONSUMPTION is set.
        """
        qs = StockLot.objects.for_stock(stock).available()
        if not lotman_settings.ALLOW_EXPIRED_CONSUMPTION:
            qs = filter_not_expired(qs, now or clock.now())
        if method == WithdrawalMethod.FEFO:
            return qs.fefo_order()
        return qs.fifo_order()

    @classmethod
    def eligible_total(cls, stock: Stock, now: datetime | None = None) -> int:
        """Quantity an automatic withdrawal could draw right now."""
        return cls.eligible_lots(stock, now=now).aggregate(
            t=Coalesce(Sum('quantity_remaining'), 0)
        )['t']

    @classmethod
    def overview(cls, stock: Stock, now: datetime | None = None) -> dict:
        """
        Summary of a stock's available lots.

        Returns:
            total_quantity, total_value, lot_count, expired_count,
            near_expiration_count, oldest_lot, next_expiring_lot
        """
        lots = cls.list_available(stock, now)

        expiring = [lot for lot in lots if lot.date_expiration and not lot.is_expired]
        next_expiring = min(
            expiring,
            key=lambda lot: (lot.date_expiration, lot.date_entered, lot.pk),
            default=None,
        )

        return {
            'stock_id': stock.pk,
            'total_quantity': sum(lot.quantity_remaining for lot in lots),
            'total_value': sum((lot.remaining_value for lot in lots), Decimal('0')),
            'lot_count': len(lots),
            'expired_count': sum(1 for lot in lots if lot.is_expired),
            'near_expiration_count': sum(1 for lot in lots if lot.is_near_expiration),
            'oldest_lot': lots[0] if lots else None,
            'next_expiring_lot': next_expiring,
        }

    @classmethod
    def expired_lots(cls, stock: Stock | None = None, now: datetime | None = None):
        """Lots past expiration that still hold stock, soonest first."""
        qs = StockLot.objects.available().select_related('stock')
        if stock is not None:
            qs = qs.for_stock(stock)
        return filter_expired(qs, now or clock.now()).fefo_order()

    @classmethod
    def near_expiration_lots(cls, stock: Stock | None = None, days: int | None = None,
                             now: datetime | None = None) -> list[StockLot]:
        """
        Lots expiring within ``days`` that still hold stock, soonest first.

        Without ``days`` each stock's category window applies.
        """
        moment = now or clock.now()
        qs = StockLot.objects.available().select_related('stock')
        if stock is not None:
            qs = qs.for_stock(stock)

        if days is not None:
            lots = list(filter_near_expiration(qs, moment, days).fefo_order())
            for lot in lots:
                cls._annotate(lot, moment, days)
            return lots

        windows = {}
        result = []
        for lot in filter_not_expired(qs.filter(date_expiration__isnull=False), moment).fefo_order():
            if lot.stock_id not in windows:
                windows[lot.stock_id] = cls.alert_window(lot.stock)
            cls._annotate(lot, moment, windows[lot.stock_id])
            if lot.is_near_expiration:
                result.append(lot)
        return result

    @classmethod
    def trashed(cls, stock: Stock | None = None):
        """Tombstoned lots, most recently deleted first."""
        qs = StockLot.objects.deleted()
        if stock is not None:
            qs = qs.for_stock(stock)
        return qs.order_by('-deleted_at', '-id')

    @classmethod
    def _annotate(cls, lot: StockLot, now: datetime, window: int) -> StockLot:
        status = classify(lot.date_expiration, now, window)
        lot.is_expired = status.is_expired
        lot.is_near_expiration = status.is_near_expiration
        lot.days_until_expiration = days_until_expiration(lot.date_expiration, now)
        lot.urgency = urgency(lot.days_until_expiration) if status.is_near_expiration else None
        return lot
