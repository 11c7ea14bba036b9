"""
Trip lifecycle state machine.

    pending upload -> in transit -> pending validation -> trip completed

Send-back edges return a trip under validation to pick-up (pending upload)
or drop-off (in transit). Supervisors may request an update or a delete, or
raise an issue on a completed trip; none of those move the status.

Every method reads the trip and the actor and returns a Transition plan:
the field changes, the activity entry and the notifications to emit. Nothing
is written here; TripService applies the plan.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.utils import timezone

from .attachments import dump_attachments
from .constants import (
    PRIVILEGED_ROLES,
    SUPERVISOR_ROLES,
    UPLOAD_FIELDS,
    NotificationType,
    PendingRequest,
    Role,
    TripAction,
    TripStatus,
)
from .exceptions import InvalidTransition, RoleNotPermitted
from .weights import derive_net_weight, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    name: str
    role: str
    contact: str = ''

    @property
    def is_privileged(self):
        return self.role in PRIVILEGED_ROLES


@dataclass
class NotificationDraft:
    message: str
    type: str = NotificationType.INFO
    target_role: Optional[str] = None
    target_user: Optional[str] = None
    trip_id: Optional[int] = None
    request_type: Optional[str] = None
    requester_name: str = ''
    requester_role: str = ''
    request_message: str = ''
    requester_contact: str = ''


@dataclass
class ActivityDraft:
    action: str
    message: str
    actor_name: str
    actor_role: str
    attachments: list = field(default_factory=list)


@dataclass
class Transition:
    action: str
    trip_id: Optional[int]
    status: str
    changes: dict = field(default_factory=dict)
    activity: Optional[ActivityDraft] = None
    notifications: list = field(default_factory=list)
    removes_trip: bool = False

    @property
    def is_noop(self):
        return not (self.changes or self.activity or self.notifications or self.removes_trip)


@dataclass(frozen=True)
class Edge:
    sources: Optional[frozenset]  # None: any status
    roles: frozenset
    target: Optional[str] = None  # None: status unchanged


ALL_STAFF_ROLES = frozenset(Role) - {Role.GUEST}

EDGES = {
    TripAction.UPLOAD: Edge(
        frozenset({TripStatus.PENDING_UPLOAD}), frozenset({Role.PICKUP_SUPERVISOR}), TripStatus.IN_TRANSIT
    ),
    TripAction.RECEIVE: Edge(
        frozenset({TripStatus.IN_TRANSIT}), frozenset({Role.DROPOFF_SUPERVISOR}), TripStatus.PENDING_VALIDATION
    ),
    TripAction.VALIDATE: Edge(
        frozenset({TripStatus.PENDING_VALIDATION}), PRIVILEGED_ROLES, TripStatus.COMPLETED
    ),
    TripAction.SEND_BACK_PICKUP: Edge(
        frozenset({TripStatus.PENDING_VALIDATION}), PRIVILEGED_ROLES, TripStatus.PENDING_UPLOAD
    ),
    TripAction.SEND_BACK_DROPOFF: Edge(
        frozenset({TripStatus.PENDING_VALIDATION}), PRIVILEGED_ROLES, TripStatus.IN_TRANSIT
    ),
    TripAction.REQUEST_UPDATE: Edge(
        frozenset({TripStatus.IN_TRANSIT, TripStatus.PENDING_VALIDATION}), SUPERVISOR_ROLES
    ),
    TripAction.REQUEST_DELETE: Edge(None, SUPERVISOR_ROLES),
    TripAction.RAISE_ISSUE: Edge(frozenset({TripStatus.COMPLETED}), SUPERVISOR_ROLES),
    TripAction.DELETE: Edge(None, PRIVILEGED_ROLES),
    TripAction.REPLY: Edge(None, ALL_STAFF_ROLES),
}

PENDING_REQUEST_CLEARED = {
    'pending_request_type': None,
    'pending_request_message': '',
    'pending_request_by': '',
    'pending_request_role': '',
    'pending_request_at': None,
}

SEND_BACK_TARGETS = {
    'pickup': (TripAction.SEND_BACK_PICKUP, PendingRequest.SENT_BACK_PICKUP, Role.PICKUP_SUPERVISOR, 'Pick-up'),
    'dropoff': (TripAction.SEND_BACK_DROPOFF, PendingRequest.SENT_BACK_DROPOFF, Role.DROPOFF_SUPERVISOR, 'Drop-off'),
}


def current_status(trip):
    return TripStatus.normalize(trip.status)


def can_edit_trip(trip, actor):
    """
    Privileged roles may edit any trip. The pick-up supervisor who entered
    the trip may edit it only until documents are uploaded.
    """
    if actor.role in PRIVILEGED_ROLES:
        return True
    return (
        actor.role == Role.PICKUP_SUPERVISOR
        and current_status(trip) == TripStatus.PENDING_UPLOAD
        and bool(trip.created_by)
        and trip.created_by == actor.name
    )


class TripStateMachine:

    def __init__(self, clock=timezone.now):
        self.clock = clock

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    @staticmethod
    def _permits(edge, status, actor):
        if actor.role not in edge.roles:
            return False
        return edge.sources is None or status in edge.sources

    def check(self, trip, action, actor):
        """Raises unless `actor` may perform `action` on `trip` right now."""
        action = TripAction(action)
        edge = EDGES[action]
        status = current_status(trip)
        if actor.role not in edge.roles:
            logger.warning(
                "Rejected %s on trip %s: role %s not permitted", action.value, trip.id, actor.role
            )
            raise RoleNotPermitted(action, actor.role)
        if edge.sources is not None and status not in edge.sources:
            logger.warning(
                "Rejected %s on trip %s: not allowed from %r", action.value, trip.id, status.value
            )
            raise InvalidTransition(action, status)
        return edge, status

    def allowed_actions(self, trip, actor):
        status = current_status(trip)
        return [action for action, edge in EDGES.items() if self._permits(edge, status, actor)]

    def _plan(self, trip, action, actor):
        edge, status = self.check(trip, action, actor)
        new_status = edge.target or status
        plan = Transition(action=TripAction(action), trip_id=trip.id, status=new_status)
        if new_status != status:
            plan.changes['status'] = new_status
        return plan

    def _pending_request(self, request_type, actor, message):
        return {
            'pending_request_type': request_type,
            'pending_request_message': message or '',
            'pending_request_by': actor.name,
            'pending_request_role': actor.role,
            'pending_request_at': self.clock(),
        }

    @staticmethod
    def _activity(action, actor, message, attachments=()):
        return ActivityDraft(
            action=action,
            message=message,
            actor_name=actor.name,
            actor_role=actor.role,
            attachments=dump_attachments(attachments),
        )

    @staticmethod
    def _notice(trip, actor, message, **kwargs):
        kwargs.setdefault('requester_contact', actor.contact)
        return NotificationDraft(
            message=message.strip(),
            trip_id=trip.id,
            requester_name=actor.name,
            requester_role=actor.role,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Forward path
    # ------------------------------------------------------------------
    def upload(self, trip, actor, documents):
        """
        Pick-up supervisor attaches the trip documents; the trip goes in transit.
        `documents` maps upload field names to lists of Attachments.
        """
        plan = self._plan(trip, TripAction.UPLOAD, actor)
        for slot, attachments in documents.items():
            if slot not in UPLOAD_FIELDS:
                raise ValueError(f"Unknown upload slot: {slot}")
            plan.changes[slot] = dump_attachments(attachments)
        if trip.pending_request_type == PendingRequest.SENT_BACK_PICKUP:
            plan.changes.update(PENDING_REQUEST_CLEARED)
        return plan

    def receive(self, trip, actor, received_date, end_gross_weight, end_empty_weight,
                end_wayment_slip=(), weight_difference_reason=''):
        plan = self._plan(trip, TripAction.RECEIVE, actor)
        end_net_weight = derive_net_weight(end_gross_weight, end_empty_weight)
        plan.changes.update({
            'received_date': received_date,
            'received_by': actor.name,
            'received_by_role': actor.role,
            'end_gross_weight': to_decimal(end_gross_weight),
            'end_empty_weight': to_decimal(end_empty_weight),
            'end_net_weight': end_net_weight,
            'end_wayment_slip_upload': dump_attachments(end_wayment_slip),
            'weight_difference_reason': weight_difference_reason or '',
        })
        if trip.pending_request_type == PendingRequest.SENT_BACK_DROPOFF:
            plan.changes.update(PENDING_REQUEST_CLEARED)

        plan.activity = self._activity(
            TripAction.RECEIVE, actor,
            weight_difference_reason or f"Trip received. End net weight {end_net_weight} T.",
            end_wayment_slip,
        )
        for role in (Role.ADMIN, Role.MANAGER, Role.ACCOUNTANT):
            plan.notifications.append(self._notice(
                trip, actor, f"Trip #{trip.id} received and pending validation.",
                type=NotificationType.INFO,
                target_role=role,
                request_type='pending-validation',
            ))
        return plan

    def validate(self, trip, actor, comments=''):
        plan = self._plan(trip, TripAction.VALIDATE, actor)
        plan.changes.update({
            'validated_by': actor.name,
            'validated_at': self.clock(),
            'validation_comments': comments or '',
        })
        plan.changes.update(PENDING_REQUEST_CLEARED)
        plan.activity = self._activity(TripAction.VALIDATE, actor, comments or 'Trip validated.')

        message = f"Trip #{trip.id} validated. {comments or ''}"
        recipients = (
            (Role.PICKUP_SUPERVISOR, trip.created_by or None),
            (Role.DROPOFF_SUPERVISOR, trip.received_by or None),
            (Role.ADMIN, None),
        )
        for role, user in recipients:
            plan.notifications.append(self._notice(
                trip, actor, message,
                type=NotificationType.INFO,
                target_role=role,
                target_user=user,
                request_type='validated',
                request_message=comments or '',
            ))
        return plan

    # ------------------------------------------------------------------
    # Backward edges and requests
    # ------------------------------------------------------------------
    def send_back(self, trip, actor, target, message=''):
        try:
            action, request_type, target_role, label = SEND_BACK_TARGETS[target]
        except KeyError:
            raise ValueError(f"Unknown send-back target: {target!r}")
        plan = self._plan(trip, action, actor)
        plan.changes.update(self._pending_request(request_type, actor, message))
        plan.activity = self._activity(
            action, actor, message or f"Sent back to {label} Supervisor."
        )
        target_user = trip.created_by if target == 'pickup' else trip.received_by
        plan.notifications.append(self._notice(
            trip, actor, f"Trip #{trip.id} sent back to {label} Supervisor. {message or ''}",
            type=NotificationType.ALERT,
            target_role=target_role,
            target_user=target_user or None,
            request_type=request_type,
            request_message=message or '',
        ))
        return plan

    def _request(self, trip, actor, action, request_type, label, reason):
        plan = self._plan(trip, action, actor)
        if trip.pending_request_type == request_type:
            logger.info("Trip %s already has a pending %s request", trip.id, request_type)
            return plan
        plan.changes.update(self._pending_request(request_type, actor, reason))
        plan.activity = self._activity(action, actor, reason or f"{label} requested.")
        invoice = getattr(trip, 'invoice_dc_number', '') or 'No Invoice'
        message = f"{label} request for Trip #{trip.id} ({invoice}) by {actor.name}."
        if reason:
            message = f"{message} Reason: {reason}"
        plan.notifications.append(self._notice(
            trip, actor, message,
            type=NotificationType.ALERT,
            target_role=Role.ADMIN,
            request_type=request_type,
            request_message=reason or '',
        ))
        return plan

    def request_update(self, trip, actor, reason=''):
        """Idempotent while an update request is already pending."""
        return self._request(trip, actor, TripAction.REQUEST_UPDATE, PendingRequest.UPDATE, 'Update', reason)

    def request_delete(self, trip, actor, reason=''):
        return self._request(trip, actor, TripAction.REQUEST_DELETE, PendingRequest.DELETE, 'Delete', reason)

    def raise_issue(self, trip, actor, reason='', attachments=()):
        plan = self._plan(trip, TripAction.RAISE_ISSUE, actor)
        plan.activity = self._activity(TripAction.RAISE_ISSUE, actor, reason or 'Issue raised.', attachments)
        message = f"Issue raised on Trip #{trip.id} by {actor.name}."
        if reason:
            message = f"{message} {reason}"
        plan.notifications.append(self._notice(
            trip, actor, message,
            type=NotificationType.ALERT,
            target_role=Role.ADMIN,
            request_type='issue',
            request_message=reason or '',
        ))
        return plan

    def delete(self, trip, actor):
        plan = self._plan(trip, TripAction.DELETE, actor)
        plan.removes_trip = True
        plan.notifications.append(self._notice(
            trip, actor, f"Trip #{trip.id} deleted by Admin.",
            type=NotificationType.INFO,
            target_role=Role.PICKUP_SUPERVISOR,
            target_user=trip.created_by or None,
            request_type='delete',
        ))
        return plan

    def reply(self, trip, actor, message, attachments=()):
        plan = self._plan(trip, TripAction.REPLY, actor)
        plan.activity = self._activity(TripAction.REPLY, actor, message or '', attachments)
        return plan
