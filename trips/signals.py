import logging

from django.core.exceptions import ValidationError
from django.db.models.signals import post_delete, pre_delete, pre_save
from django.dispatch import receiver

from .models import MaterialRate, Trip, TripActivity

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=TripActivity)
def keep_trip_activity_append_only(sender, instance, raw=False, **kwargs):
    """
    Rejects any save of an activity row that already exists.
    History entries are written once and never edited.
    """
    if raw:
        return
    if not instance._state.adding:
        raise ValidationError(f"Trip activity {instance.pk} is append-only and cannot be modified.")


@receiver(pre_delete, sender=TripActivity)
def keep_trip_activity_on_delete(sender, instance, origin=None, **kwargs):
    """
    Rejects deleting activity rows, also through a queryset. Only the cascade
    from deleting their trip may remove them.
    """
    if isinstance(origin, Trip) or getattr(origin, 'model', None) is Trip:
        return
    raise ValidationError(f"Trip activity {instance.pk} is append-only and cannot be deleted.")


@receiver(post_delete, sender=Trip)
def log_trip_removed(sender, instance, **kwargs):
    logger.info("Trip %s removed (status was %r, created by %r)", instance.pk, instance.status, instance.created_by)


@receiver(pre_save, sender=MaterialRate)
def log_material_rate_change(sender, instance, raw=False, **kwargs):
    # Existing trips keep the money fields resolved when they were created
    if raw or instance._state.adding:
        return
    logger.info(
        "Material rate %s updated: %s per ton from %s", instance.pk, instance.total_rate_per_ton, instance.effective_from
    )
