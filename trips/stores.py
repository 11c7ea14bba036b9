"""
ORM-backed collaborators used by the trip services.

TripStore and NotificationSink are the persistence seams: the workflow and
rate modules hand their results to these and never query the database
themselves.
"""
import logging

from django.db.models import Q

from .exceptions import TripNotFound
from .models import Notification, Trip, TripActivity

logger = logging.getLogger(__name__)


class ModelTripStore:

    def get_all(self, statuses=None):
        trips = Trip.objects.all()
        if statuses:
            trips = trips.filter(status__in=list(statuses))
        return trips

    def get(self, trip_id):
        try:
            return Trip.objects.get(pk=trip_id)
        except Trip.DoesNotExist:
            raise TripNotFound(trip_id)

    def create(self, trip):
        trip.save(force_insert=True)
        logger.info("Trip %s created by %r", trip.pk, trip.created_by)
        return trip

    def update(self, trip_id, changes):
        trip = self.get(trip_id)
        for name, value in changes.items():
            setattr(trip, name, value)
        trip.save(update_fields=list(changes))
        return trip

    def remove(self, trip_id):
        trip = self.get(trip_id)
        trip.delete()

    def get_activity(self, trip_id):
        return TripActivity.objects.filter(trip_id=trip_id)

    def create_activity(self, trip_id, entry):
        return TripActivity.objects.create(
            trip_id=trip_id,
            action=entry.action,
            message=entry.message,
            attachments=entry.attachments,
            actor_name=entry.actor_name,
            actor_role=entry.actor_role,
        )


class ModelNotificationSink:

    def create(self, draft):
        return Notification.objects.create(
            message=draft.message,
            type=draft.type,
            target_role=draft.target_role,
            target_user=draft.target_user,
            trip_id=draft.trip_id,
            request_type=draft.request_type,
            requester_name=draft.requester_name or '',
            requester_role=draft.requester_role or '',
            request_message=draft.request_message or '',
            requester_contact=draft.requester_contact or '',
        )

    def for_recipient(self, role, user=None):
        """Notices addressed to a role, optionally narrowed to one named user."""
        notices = Notification.objects.filter(target_role=role)
        if user:
            notices = notices.filter(Q(target_user=user) | Q(target_user__isnull=True) | Q(target_user=''))
        return notices

    def mark_read(self, notification_id, role, user=None):
        """Marks a notice read only for one of its recipients; False when there is none."""
        updated = self.for_recipient(role, user).filter(pk=notification_id).update(read=True)
        return updated > 0
