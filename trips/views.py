import json
import logging
from functools import wraps

from django.db import DatabaseError
from django.http import JsonResponse, QueryDict
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .constants import PRIVILEGED_ROLES, TripStatus
from .exceptions import RoleNotPermitted, TripError, TripValidationError
from .forms import MaterialRateForm
from .models import MaterialRate
from .services import TripService, actor_for, form_errors
from .stores import ModelNotificationSink

logger = logging.getLogger(__name__)


def read_payload(request):
    """JSON bodies become dicts; form-encoded bodies stay QueryDicts."""
    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            payload = json.loads(request.body)
        except ValueError:
            raise TripValidationError({'body': ['Invalid JSON body.']}, 'Invalid JSON body.')
        if not isinstance(payload, dict):
            raise TripValidationError({'body': ['Expected a JSON object.']}, 'Expected a JSON object.')
        return payload
    if request.method == 'POST':
        return request.POST
    return QueryDict(request.body)


def json_api(view):
    """
    Returns 401 JSON for anonymous callers instead of a login redirect and
    maps workflow errors onto JSON responses with their status codes.
    """
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'success': False, 'message': 'Authentication required. Please log in.'}, status=401)
        try:
            return view(request, *args, **kwargs)
        except TripValidationError as e:
            return JsonResponse({'success': False, 'message': str(e), 'errors': e.errors}, status=e.status_code)
        except TripError as e:
            return JsonResponse({'success': False, 'message': str(e)}, status=e.status_code)
        except DatabaseError:
            logger.exception("Storage failure in %s", view.__name__)
            return JsonResponse({'success': False, 'message': 'Internal Server Error: the change was not saved.'}, status=500)
    return wrapper


def trip_payload(trip, service, actor):
    data = trip.to_dict()
    data['allowed_actions'] = service.machine.allowed_actions(trip, actor)
    return data


def action_response(trip, service, actor, message):
    return JsonResponse({'success': True, 'message': message, 'trip': trip_payload(trip, service, actor)})


# =========================================================================
# A. TRIPS
# =========================================================================

@require_http_methods(['GET', 'POST'])
@json_api
def trip_collection(request):
    service = TripService()
    actor = actor_for(request.user)

    if request.method == 'POST':
        trip = service.create_trip(read_payload(request), actor)
        return JsonResponse(
            {'success': True, 'message': f'Trip #{trip.pk} created.', 'trip': trip_payload(trip, service, actor)},
            status=201,
        )

    try:
        statuses = [TripStatus.normalize(value) for value in request.GET.getlist('status')]
    except ValueError as e:
        raise TripValidationError({'status': [str(e)]}, str(e))
    trips = service.store.get_all(statuses)
    return JsonResponse({'success': True, 'trips': [trip_payload(trip, service, actor) for trip in trips]})


@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@json_api
def trip_detail(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)

    if request.method == 'DELETE':
        service.delete(trip_id, actor)
        return JsonResponse({'success': True, 'message': f'Trip #{trip_id} deleted.'})

    if request.method in ('PUT', 'PATCH'):
        trip = service.update_trip(trip_id, read_payload(request), actor)
        return action_response(trip, service, actor, f'Trip #{trip_id} updated.')

    trip = service.store.get(trip_id)
    return JsonResponse({'success': True, 'trip': trip_payload(trip, service, actor)})


@require_POST
@json_api
def trip_upload(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.upload(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, f'Documents uploaded. Trip #{trip_id} is in transit.')


@require_POST
@json_api
def trip_receive(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.receive(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, f'Trip #{trip_id} received and pending validation.')


@require_POST
@json_api
def trip_validate(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.validate(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, f'Trip #{trip_id} validated.')


@require_POST
@json_api
def trip_send_back(request, trip_id, target):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.send_back(trip_id, actor, target, read_payload(request))
    return action_response(trip, service, actor, f'Trip #{trip_id} sent back to {target}.')


@require_POST
@json_api
def trip_request_update(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.request_update(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, 'Update request sent to Admin.')


@require_POST
@json_api
def trip_request_delete(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.request_delete(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, 'Delete request sent to Admin.')


@require_POST
@json_api
def trip_raise_issue(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)
    trip = service.raise_issue(trip_id, actor, read_payload(request))
    return action_response(trip, service, actor, 'Issue reported to Admin.')


@require_http_methods(['GET', 'POST'])
@json_api
def trip_activity(request, trip_id):
    service = TripService()
    actor = actor_for(request.user)

    if request.method == 'POST':
        entries = service.reply(trip_id, actor, read_payload(request))
        status = 201
    else:
        service.store.get(trip_id)
        entries = service.store.get_activity(trip_id)
        status = 200
    return JsonResponse({'success': True, 'activity': [entry.to_dict() for entry in entries]}, status=status)


# =========================================================================
# B. NOTIFICATIONS
# =========================================================================

@require_GET
@json_api
def notification_list(request):
    actor = actor_for(request.user)
    notices = ModelNotificationSink().for_recipient(actor.role, actor.name)
    if request.GET.get('unread'):
        notices = notices.filter(read=False)
    return JsonResponse({'success': True, 'notifications': [notice.to_dict() for notice in notices]})


@require_POST
@json_api
def notification_read(request, notification_id):
    actor = actor_for(request.user)
    if not ModelNotificationSink().mark_read(notification_id, actor.role, actor.name):
        return JsonResponse({'success': False, 'message': f'Notification {notification_id} not found.'}, status=404)
    return JsonResponse({'success': True, 'message': 'Notification marked as read.'})


# =========================================================================
# C. MATERIAL RATES
# =========================================================================

def rate_to_dict(rate):
    return {
        'id': rate.pk,
        'rate_party_type': rate.rate_party_type,
        'rate_party_id': rate.rate_party_id,
        'rate_party': str(rate.rate_party),
        'material_type_id': rate.material_type_id,
        'pickup_location_id': rate.pickup_location_id,
        'drop_off_location_id': rate.drop_off_location_id,
        'total_km': rate.total_km,
        'rate_per_km': rate.rate_per_km,
        'rate_per_ton': rate.rate_per_ton,
        'gst_chargeable': rate.gst_chargeable,
        'gst_percentage': rate.gst_percentage,
        'gst_amount': rate.gst_amount,
        'total_rate_per_ton': rate.total_rate_per_ton,
        'effective_from': rate.effective_from,
        'effective_to': rate.effective_to,
        'remarks': rate.remarks,
    }


@require_http_methods(['GET', 'POST'])
@json_api
def material_rate_collection(request):
    actor = actor_for(request.user)

    if request.method == 'POST':
        if actor.role not in PRIVILEGED_ROLES:
            raise RoleNotPermitted('create rate', actor.role)
        form = MaterialRateForm(read_payload(request))
        if not form.is_valid():
            raise TripValidationError(form_errors(form))
        rate = form.save()
        logger.info("Material rate %s added by %r", rate.pk, actor.name)
        return JsonResponse({'success': True, 'message': 'Material rate saved.', 'rate': rate_to_dict(rate)}, status=201)

    rates = MaterialRate.objects.select_related('rate_party')
    if request.GET.get('rate_party_type'):
        rates = rates.filter(rate_party_type=request.GET['rate_party_type'])
    return JsonResponse({'success': True, 'rates': [rate_to_dict(rate) for rate in rates]})
