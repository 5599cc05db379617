"""
Lotman Admin — basic fallback (works without Unfold).

For the Unfold-styled version, add 'lotman.contrib.admin_unfold' to INSTALLED_APPS.
When the Unfold contrib is loaded, this module does nothing (avoids double registration).

- Stock: list + edit (threshold)
- StockLot: quantities read-only, soft-delete / restore actions
- Movement: read-only audit trail
- StockAlert: read-only
"""

import logging

from django.apps import apps
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


def soft_delete_lots(queryset) -> tuple[int, int]:
    """Tombstone the empty lots of ``queryset``. Returns (done, skipped)."""
    from lotman import LotError, lots

    done = skipped = 0
    for lot in queryset:
        try:
            lots.soft_delete(lot)
            done += 1
        except LotError as exc:
            logger.warning("soft_delete_lots: skipped %s: %s", lot.code, exc)
            skipped += 1
    return done, skipped


def restore_lots(queryset) -> int:
    """Restore the tombstoned lots of ``queryset``."""
    from lotman import lots
    from lotman.models import LotState

    count = 0
    for lot in queryset.filter(state=LotState.DELETED):
        lots.restore(lot)
        count += 1
    return count


# Skip registration if the Unfold contrib is installed (it will register its own admins)
if not apps.is_installed('lotman.contrib.admin_unfold'):
    from lotman.models import Movement, Stock, StockAlert, StockLot

    # =========================================================================
    # STOCK ADMIN
    # =========================================================================

    @admin.register(Stock)
    class StockAdmin(admin.ModelAdmin):
        """Stock admin — editable threshold."""

        list_display = ['code', 'article_display', 'critical_threshold', 'remaining_display']
        search_fields = ['code', 'object_id']
        readonly_fields = ['created_at', 'updated_at']

        @admin.display(description=_('Article'))
        def article_display(self, obj):
            return str(obj.article) if obj.article else '?'

        @admin.display(description=_('Remaining'))
        def remaining_display(self, obj):
            return obj.total_remaining

    # =========================================================================
    # LOT ADMIN
    # =========================================================================

    @admin.register(StockLot)
    class StockLotAdmin(admin.ModelAdmin):
        """Lot admin — quantities only change via the Lots service."""

        list_display = ['code', 'stock', 'quantity_remaining', 'quantity_initial',
                        'date_entered', 'date_expiration', 'state']
        list_filter = ['state', 'date_expiration']
        search_fields = ['code', 'lot_number', 'supplier']
        readonly_fields = ['stock', 'code', 'quantity_initial', 'quantity_remaining',
                           'state', 'deleted_at', 'created_at', 'updated_at']
        date_hierarchy = 'date_entered'
        actions = ['soft_delete_selected', 'restore_selected']

        def has_add_permission(self, request):
            return False

        def has_delete_permission(self, request, obj=None):
            return False

        @admin.action(description=_('Delete selected empty lots'))
        def soft_delete_selected(self, request, queryset):
            done, skipped = soft_delete_lots(queryset)
            self.message_user(
                request,
                _('{done} lot(s) deleted, {skipped} skipped.').format(done=done, skipped=skipped),
            )

        @admin.action(description=_('Restore selected lots'))
        def restore_selected(self, request, queryset):
            count = restore_lots(queryset)
            self.message_user(request, _('{count} lot(s) restored.').format(count=count))

    # =========================================================================
    # MOVEMENT ADMIN (read-only audit trail)
    # =========================================================================

    @admin.register(Movement)
    class MovementAdmin(admin.ModelAdmin):
        """Movement admin — read-only. Immutable audit trail."""

        list_display = ['timestamp', 'code', 'stock', 'quantity', 'method', 'motif', 'user']
        list_filter = ['method', 'timestamp']
        search_fields = ['code', 'motif']
        readonly_fields = ['code', 'stock', 'quantity', 'method', 'lots', 'reference_type',
                           'reference_id', 'motif', 'timestamp', 'user']
        date_hierarchy = 'timestamp'

        def has_add_permission(self, request):
            return False

        def has_change_permission(self, request, obj=None):
            return False

        def has_delete_permission(self, request, obj=None):
            return False

    # =========================================================================
    # STOCK ALERT ADMIN
    # =========================================================================

    @admin.register(StockAlert)
    class StockAlertAdmin(admin.ModelAdmin):
        """StockAlert admin — read-only history."""

        list_display = ['created_at', 'stock', 'quantity', 'threshold']
        list_filter = ['created_at']
        search_fields = ['stock__code']
        readonly_fields = ['stock', 'quantity', 'threshold', 'message', 'created_at']

        def has_add_permission(self, request):
            return False

        def has_change_permission(self, request, obj=None):
            return False
