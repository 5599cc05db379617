"""
Expiration classification — isolated, testable, reusable.

Determines whether a lot is expired or close to expiring, based on its
expiration date, the category's alert window and the current time.

Examples:
    - Reagent expiring 2026-03-10, now 2026-03-11: expired
    - Reagent expiring 2026-03-10, now 2026-02-20, window 30: near expiration
    - Consumable without expiration date: never flagged

An expiration date is the last calendar day the lot may be used, so a lot
is expired only from the following day on.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from lotman.clock import today

DEFAULT_ALERT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class ExpirationStatus:
    """Expiration flags of a single lot at a given moment."""

    is_expired: bool
    is_near_expiration: bool

    @property
    def is_ok(self) -> bool:
        return not (self.is_expired or self.is_near_expiration)


def days_until_expiration(date_expiration: date | None, now: datetime) -> int | None:
    """Whole days left before expiration (negative once expired, None if it never expires)."""
    if date_expiration is None:
        return None
    return (date_expiration - today(now)).days


def is_expired(date_expiration: date | None, now: datetime) -> bool:
    """True when the expiration date is strictly before today."""
    if date_expiration is None:
        return False
    return date_expiration < today(now)


def is_near_expiration(date_expiration: date | None, now: datetime,
                       alert_window_days: int | None = None) -> bool:
    """True when not expired and expiring within the alert window."""
    if date_expiration is None or is_expired(date_expiration, now):
        return False
    window = DEFAULT_ALERT_WINDOW_DAYS if alert_window_days is None else alert_window_days
    return days_until_expiration(date_expiration, now) <= window


def classify(date_expiration: date | None, now: datetime,
             alert_window_days: int | None = None) -> ExpirationStatus:
    """
    Classify a lot's expiration.

    Args:
        date_expiration: Lot expiration date (None = does not expire)
        now: Current moment
        alert_window_days: Near-expiration window (None = 30 days)

    Returns:
        ExpirationStatus with is_expired and is_near_expiration
    """
    return ExpirationStatus(
        is_expired=is_expired(date_expiration, now),
        is_near_expiration=is_near_expiration(date_expiration, now, alert_window_days),
    )


def urgency(days_left: int | None) -> str | None:
    """Urgency label for a lot expiring in ``days_left`` days."""
    if days_left is None:
        return None
    if days_left <= 7:
        return 'critical'
    if days_left <= 15:
        return 'high'
    return 'moderate'


def filter_expired(lots, now: datetime):
    """
    Filter a StockLot queryset to lots past their expiration date.

    Queryset-level version of is_expired().
    """
    return lots.filter(date_expiration__isnull=False, date_expiration__lt=today(now))


def filter_not_expired(lots, now: datetime):
    """Filter a StockLot queryset to lots usable today (or never expiring)."""
    from django.db.models import Q

    return lots.filter(
        Q(date_expiration__isnull=True) | Q(date_expiration__gte=today(now))
    )


def filter_near_expiration(lots, now: datetime, alert_window_days: int | None = None):
    """
    Filter a StockLot queryset to lots expiring within the window.

    Queryset-level version of is_near_expiration().
    """
    window = DEFAULT_ALERT_WINDOW_DAYS if alert_window_days is None else alert_window_days
    start = today(now)
    return lots.filter(
        date_expiration__gte=start,
        date_expiration__lte=start + timedelta(days=window),
    )
