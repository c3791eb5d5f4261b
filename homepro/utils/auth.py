"""Shared authentication utilities.

This module provides JWT helpers and decorators that can be used
across all route files to ensure consistent authentication behavior.
"""

from datetime import datetime, timedelta
from functools import wraps
from flask import request, jsonify, current_app
import jwt

from homepro import db


def generate_token(user):
    """Issue an HS256 API token for a user."""
    payload = {
        'user_id': user.id,
        'role': user.role,
        'exp': datetime.utcnow() + timedelta(hours=current_app.config['JWT_EXPIRES_HOURS'])
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm='HS256')


def decode_token(token):
    """Decode an API token and return its payload.

    Raises:
        jwt.ExpiredSignatureError, jwt.InvalidTokenError
    """
    if token and token.startswith('Bearer '):
        token = token.split(' ', 1)[1]
    return jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])


def token_required(f):
    """
    Decorator to require valid JWT token.

    Extracts user_id from JWT token and passes it as the first argument
    to the decorated function.

    Usage:
        @bp.route('/protected')
        @token_required
        def protected_route(current_user_id):
            return jsonify({'user_id': current_user_id})
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'User must be authenticated'}), 401

        try:
            payload = decode_token(auth_header)
            current_user_id = payload['user_id']
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except (jwt.InvalidTokenError, KeyError):
            return jsonify({'error': 'Token is invalid'}), 401

        return f(current_user_id, *args, **kwargs)
    return decorated


def role_required(role):
    """
    Decorator to restrict a route to users with ``role``.

    Must be stacked under ``token_required``. The role is read from the
    database rather than the token, so a role change takes effect at once.

    Usage:
        @bp.route('/pending')
        @token_required
        @role_required('helper')
        def pending(current_user_id):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated(current_user_id, *args, **kwargs):
            from homepro.models import User

            user = db.session.get(User, current_user_id)
            if not user:
                return jsonify({'error': 'User not found'}), 404
            if user.role != role:
                return jsonify({'error': f'Only {role}s can do this'}), 403
            return f(current_user_id, *args, **kwargs)
        return decorated
    return decorator
