# purchases/apps.py

"""
PURCHASES APP CONFIG

Purchase orders and landed-cost receiving.
"""

from django.apps import AppConfig


class PurchasesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "purchases"
    verbose_name = "Purchases"
