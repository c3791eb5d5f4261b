"""Realtime fan-out of record changes over Socket.IO.

Clients keep their views live by joining rooms (see socket_events) instead
of polling. Every emit here is best effort: a failed broadcast is logged and
never fails the write that triggered it.
"""

import logging

from homepro import socketio
from homepro.models import RequestStatus

logger = logging.getLogger(__name__)

HELPERS_ROOM = 'helpers'


def user_room(user_id):
    return f'user:{user_id}'


def request_room(request_id):
    return f'request:{request_id}'


def session_room(session_id):
    return f'session:{session_id}'


def _emit(event, payload, room):
    try:
        socketio.emit(event, payload, to=room)
    except Exception as e:
        logger.error(f"Realtime emit '{event}' to {room} failed (non-critical): {e}")


def broadcast_request_created(help_request):
    _emit('request_created', help_request.to_dict(), HELPERS_ROOM)


# Only the participants may see these; shared rooms get them stripped
PARTICIPANT_FIELDS = ('zoho_customer_url', 'session_id', 'payment_intent_id')


def _request_payload(help_request, previous_status, viewer_id=None, shared=False):
    payload = help_request.to_dict(viewer_id=viewer_id)
    payload['previous_status'] = previous_status
    if shared:
        for field in PARTICIPANT_FIELDS:
            payload.pop(field, None)
    return payload


def _close_room(room):
    try:
        socketio.close_room(room)
    except Exception as e:
        logger.error(f"Closing realtime room {room} failed (non-critical): {e}")


def broadcast_request_updated(help_request, previous_status=None):
    shared_payload = _request_payload(help_request, previous_status, shared=True)
    room = request_room(help_request.id)

    _emit('request_updated', shared_payload, room)
    _emit(
        'request_updated',
        _request_payload(help_request, previous_status, viewer_id=help_request.customer_id),
        user_room(help_request.customer_id)
    )

    if help_request.helper_id:
        _emit(
            'request_updated',
            _request_payload(help_request, previous_status, viewer_id=help_request.helper_id),
            user_room(help_request.helper_id)
        )

    # The helpers' pending list drops a request once it leaves 'pending'
    if previous_status == RequestStatus.PENDING or help_request.status == RequestStatus.PENDING:
        _emit('request_updated', shared_payload, HELPERS_ROOM)

    # Helpers who were watching an open request lose access once it is taken
    if previous_status == RequestStatus.PENDING and help_request.status != RequestStatus.PENDING:
        _close_room(room)


def broadcast_session_updated(help_session):
    _emit('session_updated', help_session.to_dict(), session_room(help_session.id))


def broadcast_notification(notification):
    _emit('notification', notification.to_dict(), user_room(notification.user_id))
