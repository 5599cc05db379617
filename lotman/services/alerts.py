"""
Stock alerts — record stocks dropping to or below their critical threshold.

An alert belongs to the crossing: a stock that stays under its threshold
is not alerted again until it has been replenished above it.

Usage:
    from lotman.services.alerts import check_alerts

    # Run periodically (celery beat, cron); consumptions call check_alert() themselves
    triggered = check_alerts()
    # Returns list of StockAlert records created
"""

import logging
from datetime import datetime

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from lotman import clock
from lotman.models.alert import StockAlert
from lotman.models.enums import LotState
from lotman.models.stock import Stock

logger = logging.getLogger('lotman')


def check_alert(stock: Stock, consumed: int | None = None,
                now: datetime | None = None) -> StockAlert | None:
    """
    Record a StockAlert when the stock's remaining quantity has dropped to
    or below its critical threshold (a threshold of 0 disables the alert).

    With ``consumed``, the stock held ``remaining + consumed`` before the
    withdrawal and only that crossing is alerted. Without it, a stock already
    alerted at or above its current quantity is skipped.

    Returns:
        The created StockAlert, or None.
    """
    if stock.critical_threshold <= 0:
        return None

    remaining = stock.total_remaining
    if consumed is not None:
        if remaining + consumed <= stock.critical_threshold:
            return None
    elif _already_alerted(stock, remaining):
        return None
    return _record(stock, remaining, now)


def check_alerts(now: datetime | None = None) -> list[StockAlert]:
    """
    Check every stock with a threshold and return the alerts created.

    Stocks already alerted at or above their current quantity are skipped,
    so repeated runs do not pile up alerts.
    """
    stocks = Stock.objects.filter(critical_threshold__gt=0).annotate(
        remaining_total=Coalesce(
            Sum('lots__quantity_remaining', filter=Q(lots__state=LotState.ACTIVE)), 0
        ),
    )

    triggered = []
    for stock in stocks:
        if _already_alerted(stock, stock.remaining_total):
            continue
        alert = _record(stock, stock.remaining_total, now)
        if alert is not None:
            triggered.append(alert)
    return triggered


def _already_alerted(stock: Stock, remaining: int) -> bool:
    last = StockAlert.objects.filter(stock=stock).order_by('-created_at', '-pk').first()
    return (
        last is not None
        and last.threshold == stock.critical_threshold
        and remaining <= last.quantity
    )


def _record(stock: Stock, remaining: int, now: datetime | None) -> StockAlert | None:
    if remaining > stock.critical_threshold:
        return None

    alert = StockAlert.objects.create(
        stock=stock,
        quantity=remaining,
        threshold=stock.critical_threshold,
        message=f"Critical stock: {remaining} <= {stock.critical_threshold}",
        created_at=now or clock.now(),
    )
    logger.warning(
        "lot.alert.triggered",
        extra={
            "alert_id": alert.pk,
            "stock_id": stock.pk,
            "critical_threshold": str(stock.critical_threshold),
            "remaining": str(remaining),
        },
    )
    return alert
