"""Django app configuration for Lotman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class LotmanConfig(AppConfig):
    """Configuration for Lotman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "lotman"
    verbose_name = _("Lot inventory")
