"""
Base classes for Unfold admin in Lotman.

Provides BaseModelAdmin with sensible defaults for textarea fields, plus
quantity/date formatting and badge helpers.
"""

from django import forms
from django.contrib.admin.widgets import AdminTextareaWidget
from django.utils.html import format_html
from unfold.admin import ModelAdmin
from unfold.widgets import UnfoldAdminTextareaWidget

BADGE_COLORS = {
    'base': 'bg-base-100 text-base-700 dark:bg-base-500/20 dark:text-base-200',
    'green': 'bg-green-100 text-green-700 dark:bg-green-500/20 dark:text-green-400',
    'yellow': 'bg-yellow-100 text-yellow-700 dark:bg-yellow-500/20 dark:text-yellow-400',
    'red': 'bg-red-100 text-red-700 dark:bg-red-500/20 dark:text-red-400',
    'blue': 'bg-blue-100 text-blue-700 dark:bg-blue-500/20 dark:text-blue-400',
}


def format_quantity(value) -> str:
    """Format a lot quantity with thousands separators ("1 250")."""
    if value is None:
        return "-"
    return f"{value:,}".replace(",", " ")


def format_date(d) -> str:
    """Format date as DD/MM/YY."""
    if d:
        return d.strftime('%d/%m/%y')
    return '-'


def format_datetime(dt) -> str:
    """Format datetime as DD/MM/YY · HH:MM."""
    if dt:
        return dt.strftime('%d/%m/%y · %H:%M')
    return '-'


def unfold_badge(label, color: str = 'base'):
    """Small rounded label in Unfold's palette."""
    return format_html(
        '<span class="inline-block font-semibold leading-normal px-2 py-1 rounded text-xxs '
        'uppercase whitespace-nowrap {}">{}</span>',
        BADGE_COLORS.get(color, BADGE_COLORS['base']),
        label,
    )


class BaseModelAdmin(ModelAdmin):
    """
    ModelAdmin base with sensible defaults.

    Textareas (comment, message, JSON lots) get half the rows and the
    width of the other form fields.
    """

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)

        for field in form.base_fields.values():
            widget = field.widget
            if not isinstance(
                widget, (forms.Textarea, AdminTextareaWidget, UnfoldAdminTextareaWidget)
            ):
                continue

            style = [
                s for s in widget.attrs.get("style", "").split(";")
                if s.strip() and "width" not in s.lower()
            ]
            style.append("width: 100%; max-width: 42rem")
            widget.attrs["style"] = "; ".join(s.strip() for s in style)

            try:
                widget.attrs["rows"] = max(1, int(widget.attrs.get("rows", 4)) // 2)
            except (ValueError, TypeError):
                widget.attrs["rows"] = 2

        return form
