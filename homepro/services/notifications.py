"""Notification fan-out for help request events.

These handlers run after a request is created or changes status. Each one
writes in-app notifications, pushes them over the realtime channel and,
where the customer has a phone number, sends an SMS. SMS failures are
logged and never block the status change.
"""

import logging

from homepro import db
from homepro.models import (
    Notification,
    NotificationType,
    RequestStatus,
    User,
    UserRole,
)
from homepro.services import realtime, sms
from homepro.utils.user_helpers import send_safe

logger = logging.getLogger(__name__)


def create_notification(user_id, notification_type, message, request_id=None,
                        session_id=None, data=None):
    """Add a notification to the session. The caller commits."""
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        message=message,
        request_id=request_id,
        session_id=session_id,
        data=data or {}
    )
    db.session.add(notification)
    return notification


def _publish(notifications):
    for notification in notifications:
        realtime.broadcast_notification(notification)


def _sms_customer(customer_id, body):
    """Text the customer if they have a phone and SMS is configured."""
    customer = db.session.get(User, customer_id)
    if not customer or not customer.phone:
        return
    if not sms.is_sms_configured():
        logger.debug('SMS not configured, skipping customer text')
        return
    send_safe(sms.send_sms, customer.phone, body)


def on_request_created(help_request):
    """Notify every available helper about a new request."""
    helpers = User.query.filter_by(role=UserRole.HELPER, is_available=True).all()

    created = [
        create_notification(
            user_id=helper.id,
            notification_type=NotificationType.NEW_REQUEST,
            message=f'New {help_request.category} request',
            request_id=help_request.id,
            data={
                'category': help_request.category,
                'description': help_request.description,
                'amount': help_request.amount,
            }
        )
        for helper in helpers
    ]
    db.session.commit()

    logger.info(f"Created notifications for {len(created)} helpers")
    _publish(created)
    realtime.broadcast_request_created(help_request)
    return created


def on_request_updated(help_request, previous_status):
    """Run the side effects for the status the request just entered."""
    status = help_request.status
    if previous_status == status:
        return []

    handler = _STATUS_HANDLERS.get(status)
    created = handler(help_request, previous_status) if handler else []
    return created


def _on_claimed(help_request, previous_status):
    # A failed payment sends the request back to 'claimed'; the customer
    # already got a payment_failed notification for that
    if previous_status != RequestStatus.PENDING:
        return []

    notification = create_notification(
        user_id=help_request.customer_id,
        notification_type=NotificationType.REQUEST_CLAIMED,
        message=f'Your request has been claimed by {help_request.helper_name}',
        request_id=help_request.id,
        data={'helper_name': help_request.helper_name}
    )
    db.session.commit()
    _publish([notification])

    _sms_customer(
        help_request.customer_id,
        sms.claimed_message(help_request.helper_name, help_request.id)
    )
    return [notification]


def _on_in_session(help_request, previous_status):
    notification = create_notification(
        user_id=help_request.customer_id,
        notification_type=NotificationType.SESSION_READY,
        message='Your session is ready! Click to join.',
        request_id=help_request.id,
        session_id=help_request.session_id
    )
    db.session.commit()
    _publish([notification])

    _sms_customer(help_request.customer_id, sms.session_ready_message(help_request.session_id))
    return [notification]


def _on_completed(help_request, previous_status):
    customer_notification = create_notification(
        user_id=help_request.customer_id,
        notification_type=NotificationType.SESSION_COMPLETED,
        message='Your session has been completed. Thank you for using HomePro!',
        request_id=help_request.id,
        session_id=help_request.session_id,
        data={'outcome': help_request.outcome}
    )
    helper_notification = create_notification(
        user_id=help_request.helper_id,
        notification_type=NotificationType.SESSION_COMPLETED,
        message=f'Session completed. You earned ${help_request.amount / 100:.2f}',
        request_id=help_request.id,
        session_id=help_request.session_id,
        data={'outcome': help_request.outcome, 'amount': help_request.amount}
    )
    db.session.commit()
    created = [customer_notification, helper_notification]
    _publish(created)
    return created


def _on_cancelled(help_request, previous_status):
    # Tell whichever participant did not cancel
    if help_request.cancelled_by_id == help_request.customer_id:
        recipient_id = help_request.helper_id
        message = 'The customer cancelled this request.'
    else:
        recipient_id = help_request.customer_id
        message = 'Your request has been cancelled.'

    if not recipient_id:
        return []

    notification = create_notification(
        user_id=recipient_id,
        notification_type=NotificationType.REQUEST_CANCELLED,
        message=message,
        request_id=help_request.id,
        data={'reason': help_request.cancel_reason}
    )
    db.session.commit()
    _publish([notification])
    return [notification]


def notify_payment_failed(help_request, reason=None):
    notification = create_notification(
        user_id=help_request.customer_id,
        notification_type=NotificationType.PAYMENT_FAILED,
        message='Your payment could not be authorized. Please try another card.',
        request_id=help_request.id,
        data={'reason': reason}
    )
    db.session.commit()
    _publish([notification])
    return notification


_STATUS_HANDLERS = {
    RequestStatus.CLAIMED: _on_claimed,
    RequestStatus.IN_SESSION: _on_in_session,
    RequestStatus.COMPLETED: _on_completed,
    RequestStatus.CANCELLED: _on_cancelled,
}
