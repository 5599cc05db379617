"""
StockLot model — discrete received quantity of an article.
"""

from datetime import datetime
from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from lotman.models.enums import LotState


class StockLotQuerySet(models.QuerySet):
    """Custom QuerySet for StockLot with convenience filters."""

    def active(self):
        """Lots that are not tombstoned."""
        return self.filter(state=LotState.ACTIVE)

    def deleted(self):
        """Tombstoned lots (restorable)."""
        return self.filter(state=LotState.DELETED)

    def available(self):
        """Active lots with remaining stock."""
        return self.active().filter(quantity_remaining__gt=0)

    def for_stock(self, stock):
        return self.filter(stock=stock)

    def fifo_order(self):
        """Oldest entry first, id breaks ties."""
        return self.order_by('date_entered', 'id')

    def fefo_order(self):
        """Soonest expiration first, lots without expiration last."""
        return self.order_by(
            F('date_expiration').asc(nulls_last=True),
            'date_entered',
            'id',
        )


class StockLot(models.Model):
    """
    Lot of an article received into a stock.

    Rules:
    - 0 <= quantity_remaining <= quantity_initial, always
    - quantity_remaining only decreases, through the consumption executor
    - A lot holding stock can never be deleted, soft or hard
    - Deletion is a state (ACTIVE / DELETED), deleted_at is its timestamp
    """

    stock = models.ForeignKey(
        'lotman.Stock',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('Stock'),
    )

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Lot code'),
    )
    lot_number = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Supplier lot number'),
    )

    quantity_initial = models.PositiveIntegerField(
        verbose_name=_('Initial quantity'),
    )
    quantity_remaining = models.PositiveIntegerField(
        verbose_name=_('Remaining quantity'),
    )

    date_entered = models.DateTimeField(
        db_index=True,
        verbose_name=_('Entry date'),
    )
    date_expiration = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiration date'),
        help_text=_('Last day the lot may be used. Empty = does not expire.'),
    )

    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Unit purchase price'),
    )
    supplier = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Supplier'),
    )
    comment = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Comment'),
    )

    state = models.CharField(
        max_length=20,
        choices=LotState.choices,
        default=LotState.ACTIVE,
        db_index=True,
        verbose_name=_('State'),
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Deleted at'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockLotQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lot')
        verbose_name_plural = _('Lots')
        ordering = ['date_entered', 'id']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_initial__gt=0),
                name='lot_quantity_initial_positive',
            ),
            models.CheckConstraint(
                condition=Q(quantity_remaining__gte=0)
                & Q(quantity_remaining__lte=F('quantity_initial')),
                name='lot_quantity_remaining_in_range',
            ),
            models.CheckConstraint(
                condition=Q(unit_price__isnull=True) | Q(unit_price__gte=0),
                name='lot_unit_price_non_negative',
            ),
            models.CheckConstraint(
                condition=(
                    Q(state=LotState.ACTIVE, deleted_at__isnull=True)
                    | Q(state=LotState.DELETED, deleted_at__isnull=False)
                ),
                name='lot_state_matches_tombstone',
            ),
        ]
        indexes = [
            models.Index(fields=['stock', 'date_entered'], name='lotman_lot_stock_entered_idx'),
            models.Index(fields=['stock', 'date_expiration'], name='lotman_lot_stock_expiry_idx'),
            models.Index(fields=['stock', 'state', 'quantity_remaining'], name='lotman_lot_stock_state_idx'),
        ]

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def is_deleted(self) -> bool:
        return self.state == LotState.DELETED

    @property
    def quantity_consumed(self) -> int:
        return self.quantity_initial - self.quantity_remaining

    @property
    def consumption_percentage(self) -> Decimal:
        """Consumed share of the initial quantity, 0-100 with 2 decimals."""
        if not self.quantity_initial:
            return Decimal('0')
        ratio = Decimal(self.quantity_consumed) * 100 / Decimal(self.quantity_initial)
        return ratio.quantize(Decimal('0.01'))

    @property
    def remaining_value(self) -> Decimal:
        """Remaining quantity valued at the purchase price (0 when unpriced)."""
        return self.quantity_remaining * (self.unit_price or Decimal('0'))

    @property
    def is_fully_consumed(self) -> bool:
        return self.quantity_remaining <= 0

    # ══════════════════════════════════════════════════════════════
    # METHODS
    # ══════════════════════════════════════════════════════════════

    def can_provide(self, quantity: int) -> bool:
        return not self.is_deleted and self.quantity_remaining >= quantity

    def expiration_status(self, now: datetime, alert_window_days: int | None = None):
        """Expiration flags at ``now`` (see lotman.expiration.classify)."""
        from lotman.expiration import classify

        return classify(self.date_expiration, now, alert_window_days)

    def __str__(self) -> str:
        expiry = f" (exp:{self.date_expiration})" if self.date_expiration else ""
        return f"Lot {self.code}{expiry}: {self.quantity_remaining}/{self.quantity_initial}"
