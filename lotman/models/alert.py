"""
StockAlert model — low-stock record per stock.

Written by lotman.services.alerts when a stock's remaining quantity
reaches its critical threshold.

Usage:
    from lotman.services.alerts import check_alert

    alert = check_alert(stock)  # None when above threshold
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class StockAlert(models.Model):
    """Snapshot of a stock found at or below its critical threshold."""

    stock = models.ForeignKey(
        'lotman.Stock',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('Stock'),
    )

    quantity = models.PositiveIntegerField(
        verbose_name=_('Remaining quantity'),
    )
    threshold = models.PositiveIntegerField(
        verbose_name=_('Critical threshold'),
    )
    message = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Message'),
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Created at'))

    class Meta:
        verbose_name = _('Stock alert')
        verbose_name_plural = _('Stock alerts')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['stock', 'created_at'], name='lotman_alert_stock_idx'),
        ]

    def __str__(self) -> str:
        return f"Alert: {self.stock.code} {self.quantity} <= {self.threshold}"
