"""
Lotman Admin with Unfold theme.

This module provides Unfold-styled admin classes for Lotman models.
To use, add 'lotman.contrib.admin_unfold' to INSTALLED_APPS after 'lotman'.

The admins will automatically register the Unfold versions.
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.decorators import display

from lotman.admin import restore_lots, soft_delete_lots
from lotman.clock import now
from lotman.contrib.admin_unfold.base import (
    BaseModelAdmin,
    format_date,
    format_datetime,
    format_quantity,
    unfold_badge,
)
from lotman.models import LotState, Movement, Stock, StockAlert, StockLot

# =============================================================================
# STOCK ADMIN
# =============================================================================


@admin.register(Stock)
class StockAdmin(BaseModelAdmin):
    """Admin for Stock model."""

    list_display = ['code', 'article_display', 'threshold_display', 'remaining_display']
    search_fields = ['code', 'object_id']
    readonly_fields = ['created_at', 'updated_at']

    compressed_fields = True
    warn_unsaved_form = True

    def get_queryset(self, request):
        return Stock.objects.with_totals()

    @display(description=_('Article'))
    def article_display(self, obj):
        return str(obj.article) if obj.article else '?'

    @display(description=_('Threshold'))
    def threshold_display(self, obj):
        return format_quantity(obj.critical_threshold) if obj.critical_threshold else '-'

    @display(description=_('Remaining'))
    def remaining_display(self, obj):
        formatted = format_quantity(obj.remaining_total)
        if obj.critical_threshold and obj.remaining_total <= obj.critical_threshold:
            return unfold_badge(formatted, 'red')
        return unfold_badge(formatted, 'green')


# =============================================================================
# LOT ADMIN
# =============================================================================


@admin.register(StockLot)
class StockLotAdmin(BaseModelAdmin):
    """Admin for StockLot model.

    Quantities only change through lots.receive() and lots.consume(),
    so the admin edits descriptive fields and runs the delete/restore
    lifecycle.
    """

    list_display = ['code', 'stock', 'remaining_display', 'entered_display',
                    'expiration_display', 'state_display']
    list_filter = ['state', 'date_expiration']
    search_fields = ['code', 'lot_number', 'supplier']
    readonly_fields = ['stock', 'code', 'quantity_initial', 'quantity_remaining',
                       'state', 'deleted_at', 'created_at', 'updated_at']
    date_hierarchy = 'date_entered'
    actions = ['soft_delete_selected', 'restore_selected']

    compressed_fields = True
    warn_unsaved_form = True

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(description=_('Remaining'))
    def remaining_display(self, obj):
        formatted = f"{format_quantity(obj.quantity_remaining)} / {format_quantity(obj.quantity_initial)}"
        if obj.quantity_remaining == 0:
            return unfold_badge(formatted, 'base')
        return unfold_badge(formatted, 'green')

    @display(description=_('Entered'))
    def entered_display(self, obj):
        return format_datetime(obj.date_entered)

    @display(description=_('Expiration'))
    def expiration_display(self, obj):
        if obj.date_expiration is None:
            return '-'
        status = obj.expiration_status(now())
        label = format_date(obj.date_expiration)
        if status.is_expired:
            return unfold_badge(label, 'red')
        if status.is_near_expiration:
            return unfold_badge(label, 'yellow')
        return label

    @display(description=_('State'))
    def state_display(self, obj):
        if obj.state == LotState.DELETED:
            return unfold_badge('DELETED', 'red')
        return unfold_badge('ACTIVE', 'green')

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


# =============================================================================
# MOVEMENT ADMIN
# =============================================================================


@admin.register(Movement)
class MovementAdmin(BaseModelAdmin):
    """Admin for Movement model (read-only)."""

    list_display = ['timestamp_display', 'code', 'stock', 'quantity_display', 'method', 'motif', 'user']
    list_filter = ['method', 'timestamp']
    search_fields = ['code', 'motif']
    readonly_fields = ['code', 'stock', 'quantity', 'method', 'lots', 'reference_type',
                       'reference_id', 'motif', 'timestamp', 'user']

    compressed_fields = True

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(description=_('Date/time'))
    def timestamp_display(self, obj):
        return format_datetime(obj.timestamp)

    @display(description=_('Quantity'))
    def quantity_display(self, obj):
        return unfold_badge(f'-{format_quantity(obj.quantity)}', 'red')


# =============================================================================
# STOCK ALERT ADMIN
# =============================================================================


@admin.register(StockAlert)
class StockAlertAdmin(BaseModelAdmin):
    """Admin for StockAlert model (read-only)."""

    list_display = ['created_at_display', 'stock', 'quantity', 'threshold']
    list_filter = ['created_at']
    search_fields = ['stock__code']
    readonly_fields = ['stock', 'quantity', 'threshold', 'message', 'created_at']

    compressed_fields = True

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    @display(description=_('Created at'))
    def created_at_display(self, obj):
        return format_datetime(obj.created_at)
