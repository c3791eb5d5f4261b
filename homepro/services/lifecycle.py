"""Help request lifecycle.

Every status change goes through ``transition`` so the legal moves live
in one table:

    pending ──> claimed ──> payment_pending ──> in_session ──> completed
       │           │            │    │
       └───────────┴────────────┴────┴──> cancelled
                                 └──> claimed (payment failed or hold released)

After the change is committed the notification handlers and the realtime
broadcast run, so clients and SMS see the same state as the database.
"""

import logging
from datetime import datetime

from homepro import db
from homepro.models import HelpRequest, PaymentStatus, RequestStatus
from homepro.services import notifications, realtime
from homepro.utils.user_helpers import send_safe

logger = logging.getLogger(__name__)

TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.CLAIMED, RequestStatus.CANCELLED},
    RequestStatus.CLAIMED: {RequestStatus.PAYMENT_PENDING, RequestStatus.CANCELLED},
    RequestStatus.PAYMENT_PENDING: {
        RequestStatus.IN_SESSION,
        RequestStatus.CLAIMED,
        RequestStatus.CANCELLED,
    },
    RequestStatus.IN_SESSION: {RequestStatus.COMPLETED},
    RequestStatus.COMPLETED: set(),
    RequestStatus.CANCELLED: set(),
}

# Field stamped with the time a status is entered
_STATUS_TIMESTAMPS = {
    RequestStatus.CLAIMED: 'claimed_at',
    RequestStatus.COMPLETED: 'completed_at',
    RequestStatus.CANCELLED: 'cancelled_at',
}


class InvalidTransition(ValueError):
    """Raised when a request cannot move to the requested status."""

    def __init__(self, current, target, reason=None):
        self.current = current
        self.target = target
        message = reason or f'Cannot move request from {current} to {target}'
        super().__init__(message)


def can_transition(current, target):
    return target in TRANSITIONS.get(current, set())


def _check_guards(help_request, target):
    if target == RequestStatus.CLAIMED and not help_request.helper_id:
        raise InvalidTransition(help_request.status, target, 'A claimed request needs a helper')
    if target == RequestStatus.IN_SESSION:
        if not help_request.session_id:
            raise InvalidTransition(help_request.status, target, 'A session is required to start')
        if help_request.payment_status != PaymentStatus.AUTHORIZED:
            raise InvalidTransition(help_request.status, target, 'Payment must be authorized first')
    if target == RequestStatus.COMPLETED and not help_request.outcome:
        raise InvalidTransition(help_request.status, target, 'An outcome is required to complete')


def transition(help_request, target, **fields):
    """Move ``help_request`` to ``target``, commit, and fire side effects.

    Args:
        help_request: HelpRequest instance
        target: RequestStatus value
        **fields: attributes to set together with the status

    Returns:
        str: the previous status

    Raises:
        InvalidTransition: if the move is not allowed
    """
    current = help_request.status
    if not can_transition(current, target):
        raise InvalidTransition(current, target)

    for name, value in fields.items():
        setattr(help_request, name, value)
    try:
        _check_guards(help_request, target)
    except InvalidTransition:
        db.session.rollback()
        raise

    # Only one writer may move the row out of the status it was read in
    moved = HelpRequest.query.filter_by(id=help_request.id, status=current).update(
        {'status': target}, synchronize_session=False
    )
    if not moved:
        db.session.rollback()
        raise InvalidTransition(current, target, 'Request was changed by someone else')

    now = datetime.utcnow()
    help_request.status = target
    help_request.updated_at = now
    stamp = _STATUS_TIMESTAMPS.get(target)
    if stamp:
        setattr(help_request, stamp, now)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Request {help_request.id}: {current} -> {target}")

    send_safe(notifications.on_request_updated, help_request, current)
    realtime.broadcast_request_updated(help_request, current)
    return current
