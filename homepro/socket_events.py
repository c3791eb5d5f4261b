"""Socket.IO events for live request and session views."""

import logging

import jwt
from flask import request
from flask_socketio import emit, join_room, leave_room

from homepro import db
from homepro.models import HelpRequest, HelpSession, User
from homepro.routes.help_requests.helpers import can_view_request
from homepro.services.realtime import (
    HELPERS_ROOM,
    request_room,
    session_room,
    user_room,
)
from homepro.utils.auth import decode_token

logger = logging.getLogger(__name__)

# sid -> user_id for the sockets this worker holds
connected_users = {}

_registered = False


def get_user_from_token(token):
    """Extract user ID from JWT token."""
    try:
        return decode_token(token).get('user_id')
    except jwt.InvalidTokenError as e:
        logger.warning(f"Socket token rejected: {e}")
        return None


def _current_user_id():
    return connected_users.get(request.sid)


def register_socket_events(socketio):
    """Register all Socket.IO event handlers."""
    global _registered
    if _registered:
        return
    _registered = True

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Authenticate the socket and join the user's personal rooms."""
        token = None
        if auth and isinstance(auth, dict):
            token = auth.get('token')
        if not token:
            token = request.args.get('token')

        if not token:
            logger.warning('Socket connection without token')
            return False

        user_id = get_user_from_token(token)
        user = db.session.get(User, user_id) if user_id else None
        if not user:
            logger.warning('Socket connection with invalid token')
            return False

        connected_users[request.sid] = user.id
        join_room(user_room(user.id))
        if user.is_helper:
            join_room(HELPERS_ROOM)

        logger.info(f'User {user.id} connected: {request.sid}')
        emit('connected', {'user_id': user.id, 'role': user.role})
        return True

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        user_id = connected_users.pop(request.sid, None)
        if user_id:
            logger.info(f'User {user_id} disconnected: {request.sid}')

    @socketio.on('subscribe_request')
    def handle_subscribe_request(data):
        """Follow a single request's status changes."""
        user_id = _current_user_id()
        request_id = (data or {}).get('request_id')
        help_request = db.session.get(HelpRequest, request_id) if request_id else None

        if not user_id or not help_request:
            emit('error', {'message': 'Request not found'})
            return

        if not can_view_request(help_request, db.session.get(User, user_id)):
            emit('error', {'message': 'Access denied'})
            return

        join_room(request_room(help_request.id))
        emit('request_updated', help_request.to_dict(viewer_id=user_id))

    @socketio.on('unsubscribe_request')
    def handle_unsubscribe_request(data):
        request_id = (data or {}).get('request_id')
        if request_id:
            leave_room(request_room(request_id))

    @socketio.on('subscribe_session')
    def handle_subscribe_session(data):
        user_id = _current_user_id()
        session_id = (data or {}).get('session_id')
        help_session = db.session.get(HelpSession, session_id) if session_id else None

        if not user_id or not help_session or not help_session.is_participant(user_id):
            emit('error', {'message': 'Session not found'})
            return

        join_room(session_room(help_session.id))
        emit('session_updated', help_session.to_dict(viewer_id=user_id))

    @socketio.on('unsubscribe_session')
    def handle_unsubscribe_session(data):
        session_id = (data or {}).get('session_id')
        if session_id:
            leave_room(session_room(session_id))
