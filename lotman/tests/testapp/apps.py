from django.apps import AppConfig


class TestappConfig(AppConfig):
    """Stand-in for the host project's article catalog."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "lotman.tests.testapp"
    label = "testapp"
