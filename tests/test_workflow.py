from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from trips.attachments import Attachment
from trips.constants import PendingRequest, Role, TripAction, TripStatus
from trips.exceptions import InvalidTransition, RoleNotPermitted
from trips.workflow import Actor, TripStateMachine, can_edit_trip

NOW = datetime(2024, 6, 16, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def machine():
    return TripStateMachine(clock=lambda: NOW)


class TestForwardPath:

    def test_upload_moves_trip_in_transit(self, machine, make_trip, pickup):
        slip = Attachment('slip.jpg', 'data:image/jpeg;base64,AAAA')
        plan = machine.upload(make_trip(), pickup, {'wayment_slip_upload': [slip]})
        assert plan.status == TripStatus.IN_TRANSIT
        assert plan.changes['status'] == TripStatus.IN_TRANSIT
        assert plan.changes['wayment_slip_upload'] == [{'name': 'slip.jpg', 'url': 'data:image/jpeg;base64,AAAA'}]
        assert plan.notifications == []

    def test_upload_rejects_unknown_slot(self, machine, make_trip, pickup):
        with pytest.raises(ValueError):
            machine.upload(make_trip(), pickup, {'photo_upload': []})

    def test_receive_derives_end_net_weight_and_notifies_office(self, machine, make_trip, dropoff):
        trip = make_trip(status=TripStatus.IN_TRANSIT)
        plan = machine.receive(trip, dropoff, date(2024, 6, 16), Decimal('24.5'), Decimal('15'))

        assert plan.status == TripStatus.PENDING_VALIDATION
        assert plan.changes['end_net_weight'] == Decimal('9.5')
        assert plan.changes['received_by'] == 'Divya Dropoff'
        assert plan.changes['received_by_role'] == Role.DROPOFF_SUPERVISOR
        assert plan.activity.action == TripAction.RECEIVE
        assert [n.target_role for n in plan.notifications] == [Role.ADMIN, Role.MANAGER, Role.ACCOUNTANT]
        assert all(n.message == 'Trip #7 received and pending validation.' for n in plan.notifications)

    def test_validate_completes_and_clears_pending_request(self, machine, make_trip, admin):
        trip = make_trip(
            status=TripStatus.PENDING_VALIDATION,
            received_by='Divya Dropoff',
            pending_request_type=PendingRequest.UPDATE,
            pending_request_message='Fix invoice',
        )
        plan = machine.validate(trip, admin, comments='All good')

        assert plan.status == TripStatus.COMPLETED
        assert plan.changes['pending_request_type'] is None
        assert plan.changes['pending_request_message'] == ''
        assert plan.changes['validated_by'] == 'Anita Admin'
        assert plan.changes['validated_at'] == NOW
        recipients = [(n.target_role, n.target_user) for n in plan.notifications]
        assert recipients == [
            (Role.PICKUP_SUPERVISOR, 'Ravi Pickup'),
            (Role.DROPOFF_SUPERVISOR, 'Divya Dropoff'),
            (Role.ADMIN, None),
        ]

    def test_full_lifecycle(self, machine, make_trip, pickup, dropoff, admin):
        trip = make_trip()
        for plan_for in (
            lambda t: machine.upload(t, pickup, {}),
            lambda t: machine.receive(t, dropoff, date(2024, 6, 16), '20', '10'),
            lambda t: machine.validate(t, admin),
        ):
            plan = plan_for(trip)
            for name, value in plan.changes.items():
                setattr(trip, name, value)
        assert trip.status == TripStatus.COMPLETED
        assert trip.end_net_weight == Decimal('10')
        assert trip.pending_request_type is None


class TestRejections:

    @pytest.mark.parametrize('role', [Role.PICKUP_SUPERVISOR, Role.DROPOFF_SUPERVISOR, Role.GUEST])
    def test_validate_needs_privileged_role(self, machine, make_trip, role):
        trip = make_trip(status=TripStatus.PENDING_VALIDATION)
        with pytest.raises(RoleNotPermitted):
            machine.validate(trip, Actor(name='someone', role=role))
        assert trip.status == TripStatus.PENDING_VALIDATION

    @pytest.mark.parametrize('role', [Role.ADMIN, Role.PICKUP_SUPERVISOR, Role.GUEST])
    def test_receive_needs_dropoff_supervisor(self, machine, make_trip, role):
        with pytest.raises(RoleNotPermitted):
            machine.receive(make_trip(status=TripStatus.IN_TRANSIT), Actor(name='x', role=role), None, 1, 0)

    def test_wrong_status(self, machine, make_trip, admin):
        with pytest.raises(InvalidTransition):
            machine.validate(make_trip(status=TripStatus.IN_TRANSIT), admin)

    def test_role_is_checked_before_status(self, machine, make_trip, guest):
        with pytest.raises(RoleNotPermitted):
            machine.validate(make_trip(status=TripStatus.IN_TRANSIT), guest)

    def test_legacy_status_spelling(self, machine, make_trip, pickup):
        plan = machine.raise_issue(make_trip(status='validated'), pickup, reason='Short weight')
        assert plan.status == TripStatus.COMPLETED

    def test_allowed_actions(self, machine, make_trip, pickup, admin):
        trip = make_trip()
        assert set(machine.allowed_actions(trip, pickup)) == {
            TripAction.UPLOAD, TripAction.REQUEST_DELETE, TripAction.REPLY,
        }
        assert set(machine.allowed_actions(trip, admin)) == {TripAction.DELETE, TripAction.REPLY}


class TestSendBackAndRequests:

    def test_send_back_to_pickup(self, machine, make_trip, accountant):
        trip = make_trip(status=TripStatus.PENDING_VALIDATION)
        plan = machine.send_back(trip, accountant, 'pickup', message='Invoice blurred')
        assert plan.status == TripStatus.PENDING_UPLOAD
        assert plan.changes['pending_request_type'] == PendingRequest.SENT_BACK_PICKUP
        assert plan.changes['pending_request_by'] == 'Arun Accounts'
        assert plan.changes['pending_request_at'] == NOW
        [notice] = plan.notifications
        assert notice.target_role == Role.PICKUP_SUPERVISOR
        assert notice.target_user == 'Ravi Pickup'
        assert notice.message == 'Trip #7 sent back to Pick-up Supervisor. Invoice blurred'

    def test_send_back_to_dropoff(self, machine, make_trip, admin):
        trip = make_trip(status=TripStatus.PENDING_VALIDATION, received_by='Divya Dropoff')
        plan = machine.send_back(trip, admin, 'dropoff')
        assert plan.status == TripStatus.IN_TRANSIT
        assert plan.notifications[0].target_user == 'Divya Dropoff'

    def test_unknown_send_back_target(self, machine, make_trip, admin):
        with pytest.raises(ValueError):
            machine.send_back(make_trip(status=TripStatus.PENDING_VALIDATION), admin, 'depot')

    def test_reupload_clears_send_back(self, machine, make_trip, pickup):
        trip = make_trip(pending_request_type=PendingRequest.SENT_BACK_PICKUP)
        plan = machine.upload(trip, pickup, {})
        assert plan.changes['pending_request_type'] is None

    def test_request_update_is_idempotent(self, machine, make_trip, dropoff):
        trip = make_trip(status=TripStatus.IN_TRANSIT)
        first = machine.request_update(trip, dropoff, reason='Wrong vehicle number')
        assert first.changes['pending_request_type'] == PendingRequest.UPDATE
        assert len(first.notifications) == 1
        assert first.notifications[0].message == (
            'Update request for Trip #7 (INV-101) by Divya Dropoff. Reason: Wrong vehicle number'
        )

        for name, value in first.changes.items():
            setattr(trip, name, value)
        second = machine.request_update(trip, dropoff, reason='Wrong vehicle number')
        assert second.is_noop
        assert trip.pending_request_type == PendingRequest.UPDATE

    def test_request_update_not_on_pending_upload(self, machine, make_trip, pickup):
        with pytest.raises(InvalidTransition):
            machine.request_update(make_trip(), pickup)

    def test_raise_issue_only_logs_and_notifies(self, machine, make_trip, dropoff):
        trip = make_trip(status=TripStatus.COMPLETED)
        plan = machine.raise_issue(trip, dropoff, reason='Short by 2T')
        assert plan.changes == {}
        assert plan.activity.message == 'Short by 2T'
        assert plan.notifications[0].target_role == Role.ADMIN

    def test_request_delete_from_any_status(self, machine, make_trip, pickup):
        plan = machine.request_delete(make_trip(status=TripStatus.COMPLETED), pickup, reason='Duplicate')
        assert plan.changes['pending_request_type'] == PendingRequest.DELETE
        assert plan.status == TripStatus.COMPLETED

    def test_delete_notifies_creator(self, machine, make_trip, admin):
        plan = machine.delete(make_trip(status=TripStatus.IN_TRANSIT), admin)
        assert plan.removes_trip
        [notice] = plan.notifications
        assert notice.message == 'Trip #7 deleted by Admin.'
        assert (notice.target_role, notice.target_user) == (Role.PICKUP_SUPERVISOR, 'Ravi Pickup')

    def test_guest_cannot_reply(self, machine, make_trip, guest):
        with pytest.raises(RoleNotPermitted):
            machine.reply(make_trip(), guest, 'hello')


class TestCanEditTrip:

    def test_creator_until_upload(self, make_trip, pickup):
        assert can_edit_trip(make_trip(), pickup)
        assert not can_edit_trip(make_trip(status=TripStatus.IN_TRANSIT), pickup)

    def test_other_pickup_supervisor(self, make_trip, pickup):
        assert not can_edit_trip(make_trip(created_by='Someone Else'), pickup)

    def test_privileged_any_time(self, make_trip, accountant):
        assert can_edit_trip(make_trip(status=TripStatus.COMPLETED), accountant)

    def test_dropoff_and_guest(self, make_trip, dropoff, guest):
        assert not can_edit_trip(make_trip(), dropoff)
        assert not can_edit_trip(make_trip(), guest)
