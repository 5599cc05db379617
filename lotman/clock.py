"""
Clock used by every time-dependent lot rule.

The callable is resolved from LOTMAN['CLOCK'] on each call, so tests can pin
"now" with override_settings, and every service also accepts an explicit
``now`` argument.
"""

from datetime import date, datetime

from django.utils import timezone
from django.utils.module_loading import import_string

from lotman.conf import lotman_settings


def now() -> datetime:
    """Current aware datetime from the configured clock."""
    return import_string(lotman_settings.CLOCK)()


def today(at: datetime | None = None) -> date:
    """Local calendar date of ``at`` (configured clock when omitted)."""
    moment = at or now()
    if timezone.is_naive(moment):
        return moment.date()
    return timezone.localdate(moment)
