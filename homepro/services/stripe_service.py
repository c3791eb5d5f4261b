"""Stripe payment service for pre-authorized session payments.

Customers authorize the session price when a helper claims their request.
The hold is captured after the session or released when the request is
cancelled, so a PaymentIntent is always created with manual capture.
"""

import logging
from datetime import datetime

import stripe
from flask import current_app

from homepro import db
from homepro.models import HelpRequest, Payment, PaymentStatus, RequestStatus
from homepro.services import lifecycle, notifications, realtime
from homepro.utils.user_helpers import send_safe

logger = logging.getLogger(__name__)

# PaymentIntent.status -> our PaymentStatus
INTENT_STATUS_MAP = {
    'requires_capture': PaymentStatus.AUTHORIZED,
    'succeeded': PaymentStatus.CAPTURED,
    'canceled': PaymentStatus.CANCELLED,
}


def _configure():
    stripe.api_key = current_app.config['STRIPE_SECRET_KEY']
    stripe.api_version = current_app.config.get('STRIPE_API_VERSION')


def _payment_for(payment_intent_id):
    return Payment.query.filter_by(payment_intent_id=payment_intent_id).first()


def _set_status(help_request, payment, status, failure_reason=None):
    """Record a payment status on both the Payment row and its request."""
    now = datetime.utcnow()
    if payment:
        payment.status = status
        if status == PaymentStatus.AUTHORIZED:
            payment.authorized_at = payment.authorized_at or now
        elif status == PaymentStatus.CAPTURED:
            payment.captured_at = payment.captured_at or now
        elif status == PaymentStatus.CANCELLED:
            payment.cancelled_at = payment.cancelled_at or now
        elif status == PaymentStatus.FAILED:
            payment.failure_reason = failure_reason
    if help_request:
        help_request.payment_status = status
        help_request.updated_at = now


def _reopen_unpaid(help_request):
    """Send a request whose hold is gone back to 'claimed'. Returns True if it moved."""
    if help_request.status != RequestStatus.PAYMENT_PENDING:
        return False
    lifecycle.transition(help_request, RequestStatus.CLAIMED, payment_intent_id=None)
    return True


class StripeService:
    """Service for handling Stripe PaymentIntents for help requests."""

    @staticmethod
    def create_payment_intent(help_request, payment_method_id):
        """Create a manual-capture PaymentIntent for a claimed request.

        Moves the request to 'payment_pending'.

        Args:
            help_request: HelpRequest in 'claimed' status
            payment_method_id: Stripe PaymentMethod id created by the client

        Returns:
            dict: {
                'payment': Payment,
                'client_secret': Stripe client secret for the frontend,
                'payment_intent_id': Stripe PaymentIntent ID
            }

        Raises:
            lifecycle.InvalidTransition: if the request cannot take a payment
            stripe.StripeError: if Stripe rejects the call
        """
        if not lifecycle.can_transition(help_request.status, RequestStatus.PAYMENT_PENDING):
            raise lifecycle.InvalidTransition(help_request.status, RequestStatus.PAYMENT_PENDING)

        _configure()
        payment_intent = stripe.PaymentIntent.create(
            amount=help_request.amount,
            currency=help_request.currency,
            payment_method=payment_method_id,
            capture_method='manual',
            metadata={
                'request_id': help_request.id,
                'customer_id': help_request.customer_id,
                'helper_id': help_request.helper_id or '',
            }
        )

        payment = Payment(
            request_id=help_request.id,
            customer_id=help_request.customer_id,
            helper_id=help_request.helper_id,
            payment_intent_id=payment_intent.id,
            amount=help_request.amount,
            currency=help_request.currency,
            status=PaymentStatus.PENDING
        )
        db.session.add(payment)

        lifecycle.transition(
            help_request,
            RequestStatus.PAYMENT_PENDING,
            payment_intent_id=payment_intent.id,
            payment_status=PaymentStatus.PENDING
        )

        logger.info(f"PaymentIntent {payment_intent.id} created for request {help_request.id}")
        return {
            'payment': payment,
            'client_secret': payment_intent.client_secret,
            'payment_intent_id': payment_intent.id
        }

    @staticmethod
    def refresh_payment(help_request):
        """Pull the PaymentIntent status from Stripe into our records.

        Returns:
            str: the request's payment status after the refresh
        """
        if not help_request.payment_intent_id:
            raise ValueError('No payment intent found')

        _configure()
        payment_intent = stripe.PaymentIntent.retrieve(help_request.payment_intent_id)
        status = INTENT_STATUS_MAP.get(payment_intent.status)
        if status and status != help_request.payment_status:
            _set_status(help_request, _payment_for(help_request.payment_intent_id), status)
            db.session.commit()
            realtime.broadcast_request_updated(help_request)
        return help_request.payment_status

    @staticmethod
    def capture_payment(help_request):
        """Capture an authorized hold.

        Raises:
            ValueError: if there is nothing to capture
            stripe.StripeError: if the capture fails
        """
        if not help_request.payment_intent_id:
            raise ValueError('No payment intent found')
        if help_request.payment_status != PaymentStatus.AUTHORIZED:
            raise ValueError(f'Cannot capture payment with status {help_request.payment_status}')

        _configure()
        stripe.PaymentIntent.capture(help_request.payment_intent_id)

        _set_status(help_request, _payment_for(help_request.payment_intent_id), PaymentStatus.CAPTURED)
        db.session.commit()

        logger.info(f"Captured payment for request {help_request.id}")
        realtime.broadcast_request_updated(help_request)
        return help_request

    @staticmethod
    def cancel_payment(help_request, reopen=True):
        """Release an open hold. A request without an intent is a no-op.

        With ``reopen`` a request still waiting on this payment goes back to
        'claimed' so the customer can pay again.

        Returns:
            bool: True if an intent was cancelled

        Raises:
            stripe.StripeError: if the cancellation fails
        """
        if not help_request.payment_intent_id:
            return False
        if help_request.payment_status not in PaymentStatus.OPEN:
            return False

        _configure()
        stripe.PaymentIntent.cancel(help_request.payment_intent_id)

        _set_status(help_request, _payment_for(help_request.payment_intent_id), PaymentStatus.CANCELLED)
        db.session.commit()

        logger.info(f"Cancelled payment for request {help_request.id}")
        if not (reopen and _reopen_unpaid(help_request)):
            realtime.broadcast_request_updated(help_request)
        return True

    @staticmethod
    def settle_for_outcome(help_request, outcome):
        """Capture or release the hold once a session has an outcome.

        Returns:
            str: 'captured', 'cancelled' or 'skipped'
        """
        if help_request.payment_status != PaymentStatus.AUTHORIZED:
            return 'skipped'
        if outcome == 'unresolved':
            StripeService.cancel_payment(help_request, reopen=False)
            return 'cancelled'
        StripeService.capture_payment(help_request)
        return 'captured'

    @staticmethod
    def construct_event(payload, sig_header):
        """Verify a webhook payload.

        Raises:
            ValueError: invalid payload
            stripe.SignatureVerificationError: bad signature
        """
        return stripe.Webhook.construct_event(
            payload, sig_header, current_app.config['STRIPE_WEBHOOK_SECRET']
        )

    @staticmethod
    def handle_webhook(event):
        """Handle Stripe webhook events.

        Returns:
            dict: Result of handling
        """
        event_type = event['type']
        intent = event['data']['object']

        status = {
            'payment_intent.amount_capturable_updated': PaymentStatus.AUTHORIZED,
            'payment_intent.succeeded': PaymentStatus.CAPTURED,
            'payment_intent.payment_failed': PaymentStatus.FAILED,
            'payment_intent.canceled': PaymentStatus.CANCELLED,
        }.get(event_type)

        if not status:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return {'status': 'ignored'}

        payment = _payment_for(intent['id'])
        if not payment:
            logger.warning(f"Stripe event {event_type} for unknown intent {intent['id']}")
            return {'status': 'ignored'}

        help_request = db.session.get(HelpRequest, payment.request_id)
        if help_request and help_request.payment_intent_id != payment.payment_intent_id:
            # A retry replaced this intent; only the Payment row is updated
            help_request = None

        if status == PaymentStatus.FAILED:
            reason = (intent.get('last_payment_error') or {}).get('message')
            _set_status(help_request, payment, PaymentStatus.FAILED, failure_reason=reason)
            db.session.commit()
            logger.warning(f"Payment failed for request {payment.request_id}: {reason}")

            if help_request and help_request.status == RequestStatus.PAYMENT_PENDING:
                lifecycle.transition(help_request, RequestStatus.CLAIMED, payment_intent_id=None)
            if help_request:
                send_safe(notifications.notify_payment_failed, help_request, reason)
            return {'status': 'failed'}

        _set_status(help_request, payment, status)
        db.session.commit()
        if help_request:
            reopened = status == PaymentStatus.CANCELLED and _reopen_unpaid(help_request)
            if not reopened:
                realtime.broadcast_request_updated(help_request)

        logger.info(f"Payment {payment.payment_intent_id} is now {status}")
        return {'status': status}
