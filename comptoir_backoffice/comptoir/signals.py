from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import BillingSettings


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_billing_settings(sender, instance, created, **kwargs):
    """Every new user starts with default numbering formats and counters."""
    if created:
        BillingSettings.for_user(instance)
