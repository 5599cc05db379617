from django.apps import AppConfig


class LotmanAdminUnfoldConfig(AppConfig):
    name = "lotman.contrib.admin_unfold"
    label = "lotman_admin_unfold"
    verbose_name = "Lot inventory (Unfold admin)"
