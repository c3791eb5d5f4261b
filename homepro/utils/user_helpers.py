"""Shared user-related helper functions."""

import logging

from homepro import db

logger = logging.getLogger(__name__)


def get_display_name(user, fallback='Someone'):
    """
    Get the best display name for a user.

    Priority:
    1. display_name (if set)
    2. the local part of the email
    3. ``fallback``
    """
    if not user:
        return fallback
    if user.display_name and user.display_name.strip():
        return user.display_name.strip()
    if user.email:
        return user.email.split('@')[0]
    return fallback


def send_safe(send_func, *args, **kwargs):
    """
    Call a side-effect function, logging failures instead of raising.

    SMS and realtime delivery failures should never cause the main
    request to fail.

    Returns:
        The function's return value, or None if it raised.
    """
    try:
        return send_func(*args, **kwargs)
    except Exception as e:
        # A handler that failed mid-commit leaves the session unusable
        db.session.rollback()
        logger.error(f"{getattr(send_func, '__name__', send_func)} failed (non-critical): {e}")
        return None
