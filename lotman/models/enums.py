"""
Enums for Lotman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class WithdrawalMethod(models.TextChoices):
    """
    How a consumption picks its lots.

    FIFO:   Oldest entered lot first.
    FEFO:   Soonest expiring lot first, lots without expiration last.
    MANUAL: Caller names the lots and quantities.
    """
    FIFO = 'fifo', _('FIFO')
    FEFO = 'fefo', _('FEFO')
    MANUAL = 'manual', _('Manual')


class LotState(models.TextChoices):
    """Lot lifecycle state."""
    ACTIVE = 'active', _('Active')       # Visible, may be consumed
    DELETED = 'deleted', _('Deleted')    # Tombstoned, restorable
