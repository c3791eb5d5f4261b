"""Shared helper functions for help request routes."""

from homepro import db
from homepro.models import HelpRequest, RequestStatus, User, UserRole


def can_view_request(help_request, user):
    """Participants see their requests; any helper can see open ones."""
    if not user:
        return False
    if help_request.is_participant(user.id):
        return True
    return user.role == UserRole.HELPER and help_request.status == RequestStatus.PENDING


def load_request_and_user(request_id, user_id):
    return db.session.get(HelpRequest, request_id), db.session.get(User, user_id)
