from django.apps import AppConfig


class BoxesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.boxes"
    label = "boxes"
