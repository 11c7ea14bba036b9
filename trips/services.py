"""
Trip use cases: entry, edit and the workflow actions.

Each action loads the trip, asks the TripStateMachine for a Transition plan
and applies the whole plan in one transaction. A rejected action raises
before anything is written, so the stored trip is left exactly as it was.
"""
import logging

from django.db import transaction

from .constants import PRIVILEGED_ROLES, Role, TripAction
from .directories import MasterData
from .exceptions import RoleNotPermitted, TripValidationError
from .forms import ReceiveTripForm, ReplyForm, RequestMessageForm, TripEntryForm, TripForm, UploadDocumentsForm
from .rates import RateResolver
from .stores import ModelNotificationSink, ModelTripStore
from .workflow import SEND_BACK_TARGETS, Actor, TripStateMachine, can_edit_trip

logger = logging.getLogger(__name__)

# Auth group name -> role; checked in this order
GROUP_ROLES = (
    ('Admin', Role.ADMIN),
    ('Manager', Role.MANAGER),
    ('Accountant', Role.ACCOUNTANT),
    ('Pickup Supervisor', Role.PICKUP_SUPERVISOR),
    ('Dropoff Supervisor', Role.DROPOFF_SUPERVISOR),
)

CREATOR_ROLES = PRIVILEGED_ROLES | {Role.PICKUP_SUPERVISOR}


def role_for(user):
    if user is None or not user.is_authenticated:
        return Role.GUEST
    if user.is_superuser:
        return Role.ADMIN
    groups = set(user.groups.values_list('name', flat=True))
    for group_name, role in GROUP_ROLES:
        if group_name in groups:
            return role
    return Role.GUEST


def actor_for(user):
    """The workflow Actor for a Django user; anonymous users act as guests."""
    role = role_for(user)
    if user is None or not user.is_authenticated:
        return Actor(name='', role=role)
    name = user.get_full_name() or user.get_username()
    return Actor(name=name, role=role, contact=getattr(user, 'email', '') or '')


def form_errors(form):
    return {field: [str(message) for message in messages] for field, messages in form.errors.items()}


def validated(form):
    if not form.is_valid():
        raise TripValidationError(form_errors(form))
    return form.cleaned_data


class TripService:

    def __init__(self, store=None, notifications=None, machine=None, master_data=None):
        self.store = store or ModelTripStore()
        self.notifications = notifications or ModelNotificationSink()
        self.machine = machine or TripStateMachine()
        self._master_data = master_data

    @property
    def master_data(self):
        if self._master_data is None:
            self._master_data = MasterData.from_database()
        return self._master_data

    # ------------------------------------------------------------------
    # Entry and edit
    # ------------------------------------------------------------------
    def create_trip(self, data, actor):
        """
        Validates a new trip, prices it once from the master data and stores it.
        The money fields are never recomputed afterwards.
        """
        if actor.role not in CREATOR_ROLES:
            logger.warning("Rejected trip entry: role %s not permitted", actor.role)
            raise RoleNotPermitted('create', actor.role)

        form = TripEntryForm(data)
        validated(form)
        trip = form.save(commit=False)
        trip.created_by = actor.name
        money = RateResolver(self.master_data).resolve(trip)
        trip.apply_money(money)

        with transaction.atomic():
            trip = self.store.create(trip)
        logger.info(
            "Trip %s priced: revenue %s, profit %s", trip.pk, money.revenue, money.profit
        )
        return trip

    def update_trip(self, trip_id, data, actor):
        trip = self.store.get(trip_id)
        if not can_edit_trip(trip, actor):
            logger.warning("Rejected edit of trip %s by %r (%s)", trip_id, actor.name, actor.role)
            raise RoleNotPermitted('edit', actor.role)

        form = TripForm.for_instance(trip, data)
        cleaned = validated(form)
        changes = {name: cleaned[name] for name in form.Meta.fields}
        with transaction.atomic():
            trip = self.store.update(trip_id, changes)
        logger.info("Trip %s edited by %r", trip_id, actor.name)
        return trip

    # ------------------------------------------------------------------
    # Plan application
    # ------------------------------------------------------------------
    def apply(self, plan):
        """Writes a Transition plan; returns the updated trip, or None once removed."""
        if plan.is_noop:
            return self.store.get(plan.trip_id)

        with transaction.atomic():
            for draft in plan.notifications:
                self.notifications.create(draft)
            if plan.removes_trip:
                self.store.remove(plan.trip_id)
                trip = None
            else:
                if plan.changes:
                    trip = self.store.update(plan.trip_id, plan.changes)
                else:
                    trip = self.store.get(plan.trip_id)
                if plan.activity is not None:
                    self.store.create_activity(plan.trip_id, plan.activity)

        logger.info("Trip %s: %s applied, status %s", plan.trip_id, plan.action.value, plan.status.value)
        return trip

    # ------------------------------------------------------------------
    # Workflow actions
    # ------------------------------------------------------------------
    def _load(self, trip_id, action, actor):
        """Loads the trip and rejects the action before any payload is read."""
        trip = self.store.get(trip_id)
        self.machine.check(trip, action, actor)
        return trip

    def upload(self, trip_id, actor, data):
        trip = self._load(trip_id, TripAction.UPLOAD, actor)
        form = UploadDocumentsForm(data)
        validated(form)
        return self.apply(self.machine.upload(trip, actor, form.documents()))

    def receive(self, trip_id, actor, data):
        trip = self._load(trip_id, TripAction.RECEIVE, actor)
        cleaned = validated(ReceiveTripForm(data))
        return self.apply(self.machine.receive(
            trip, actor,
            received_date=cleaned['received_date'],
            end_gross_weight=cleaned.get('end_gross_weight'),
            end_empty_weight=cleaned.get('end_empty_weight'),
            end_wayment_slip=cleaned.get('end_wayment_slip_upload') or [],
            weight_difference_reason=cleaned.get('weight_difference_reason', ''),
        ))

    def validate(self, trip_id, actor, data=None):
        trip = self._load(trip_id, TripAction.VALIDATE, actor)
        cleaned = validated(RequestMessageForm(data or {}))
        return self.apply(self.machine.validate(trip, actor, comments=cleaned['message']))

    def send_back(self, trip_id, actor, target, data=None):
        if target not in SEND_BACK_TARGETS:
            raise TripValidationError({'target': [f"Unknown send-back target: {target}"]})
        trip = self._load(trip_id, SEND_BACK_TARGETS[target][0], actor)
        cleaned = validated(RequestMessageForm(data or {}))
        return self.apply(self.machine.send_back(trip, actor, target, message=cleaned['message']))

    def request_update(self, trip_id, actor, data=None):
        trip = self._load(trip_id, TripAction.REQUEST_UPDATE, actor)
        cleaned = validated(RequestMessageForm(data or {}))
        return self.apply(self.machine.request_update(trip, actor, reason=cleaned['message']))

    def request_delete(self, trip_id, actor, data=None):
        trip = self._load(trip_id, TripAction.REQUEST_DELETE, actor)
        cleaned = validated(RequestMessageForm(data or {}))
        return self.apply(self.machine.request_delete(trip, actor, reason=cleaned['message']))

    def raise_issue(self, trip_id, actor, data=None):
        trip = self._load(trip_id, TripAction.RAISE_ISSUE, actor)
        cleaned = validated(RequestMessageForm(data or {}))
        return self.apply(self.machine.raise_issue(
            trip, actor, reason=cleaned['message'], attachments=cleaned.get('attachments') or [],
        ))

    def delete(self, trip_id, actor):
        trip = self.store.get(trip_id)
        self.apply(self.machine.delete(trip, actor))

    def reply(self, trip_id, actor, data):
        trip = self._load(trip_id, TripAction.REPLY, actor)
        cleaned = validated(ReplyForm(data))
        self.apply(self.machine.reply(
            trip, actor, cleaned['message'], attachments=cleaned.get('attachments') or [],
        ))
        return self.store.get_activity(trip_id)
