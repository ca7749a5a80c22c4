from django.apps import AppConfig  # type: ignore


class YachtsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.yachts"
    verbose_name = "Yachts"
