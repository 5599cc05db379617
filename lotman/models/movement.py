"""
Movement model — Immutable record of completed consumptions.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from lotman.models.enums import WithdrawalMethod


class Movement(models.Model):
    """
    Immutable record of one consumption.

    Rules:
    - Written once by the consumption executor, in the same transaction
      that decrements the lots
    - NEVER update() or delete()
    - ``lots`` holds the applied (lot_id, quantity) pairs, in draw order
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Code'),
    )
    stock = models.ForeignKey(
        'lotman.Stock',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Stock'),
    )

    quantity = models.PositiveIntegerField(
        verbose_name=_('Quantity consumed'),
    )
    method = models.CharField(
        max_length=10,
        choices=WithdrawalMethod.choices,
        verbose_name=_('Withdrawal method'),
    )
    lots = models.JSONField(
        default=list,
        verbose_name=_('Lots used'),
        help_text=_('[{"lot_id": 1, "quantity": 5}, ...]'),
    )

    # External reference (exam request, order, etc)
    reference_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Reference type'),
    )
    reference_id = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Reference ID'))
    reference = GenericForeignKey('reference_type', 'reference_id')

    motif = models.CharField(
        max_length=500,
        blank=True,
        default='',
        verbose_name=_('Motif'),
    )

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Date/time'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('User'),
    )

    class Meta:
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['stock', 'timestamp'], name='lotman_mov_stock_ts_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Movements are immutable. "
                "Receive a new lot to bring stock back in."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Movements are immutable and cannot be deleted.")

    @property
    def lot_ids(self) -> list[int]:
        return [line['lot_id'] for line in self.lots]

    def summary(self) -> dict:
        """API shape: method, total consumed and lots used."""
        return {
            'movement': self.code,
            'method': self.method,
            'total_consumed': self.quantity,
            'lots_used': [
                {'lot_id': line['lot_id'], 'quantity': line['quantity']}
                for line in self.lots
            ],
        }

    def __str__(self) -> str:
        return f"-{self.quantity} {self.method} | {self.motif or self.code}"
