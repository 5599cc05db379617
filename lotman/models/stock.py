"""
Stock model — per-article stock that owns lots.
"""

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from lotman.models.enums import LotState


class StockManager(models.Manager):
    """Manager with helper methods for Stock queries."""

    def for_article(self, article):
        """Filter stocks for a specific article."""
        ct = ContentType.objects.get_for_model(article)
        return self.filter(content_type=ct, object_id=article.pk)

    def with_totals(self):
        """Annotate total remaining quantity and active lot count."""
        active = Q(lots__state=LotState.ACTIVE)
        return self.annotate(
            remaining_total=Coalesce(Sum('lots__quantity_remaining', filter=active), 0),
            available_lot_count=Count('lots', filter=active & Q(lots__quantity_remaining__gt=0)),
        )


class Stock(models.Model):
    """
    Stock of one article.

    The article lives in the host project and is referenced generically,
    so any catalog model can own lots. The remaining quantity is never
    stored here: it is always the sum of the active lots.
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Code'),
    )

    # Generic reference to article (agnostic)
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.PROTECT,
        verbose_name=_('Article type'),
    )
    object_id = models.PositiveIntegerField(
        verbose_name=_('Article ID'),
    )
    article = GenericForeignKey('content_type', 'object_id')

    critical_threshold = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Critical threshold'),
        help_text=_('Low-stock alert when remaining quantity drops to this level. 0 = off.'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockManager()

    class Meta:
        verbose_name = _('Stock')
        verbose_name_plural = _('Stocks')
        ordering = ['code']
        indexes = [
            models.Index(fields=['content_type', 'object_id'], name='lotman_stock_article_idx'),
        ]

    @property
    def total_remaining(self) -> int:
        """Sum of quantity_remaining over active lots."""
        return self.lots.filter(state=LotState.ACTIVE).aggregate(
            t=Coalesce(Sum('quantity_remaining'), 0)
        )['t']

    @property
    def is_below_threshold(self) -> bool:
        return self.critical_threshold > 0 and self.total_remaining <= self.critical_threshold

    def __str__(self) -> str:
        return f"{self.code} ({self.article})"
