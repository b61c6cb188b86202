from django.apps import AppConfig


class VatConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "vat"
    verbose_name = "VAT"
