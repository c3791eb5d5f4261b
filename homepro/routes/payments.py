"""Payment routes for pre-authorized session payments."""

import stripe
from flask import Blueprint, request, jsonify, current_app
from homepro import db
from homepro.models import HelpRequest, Payment, RequestStatus
from homepro.services.lifecycle import InvalidTransition
from homepro.services.stripe_service import StripeService
from homepro.utils import token_required

payments_bp = Blueprint('payments', __name__)


def _load_request(data):
    request_id = data.get('request_id')
    if not request_id:
        return None
    return db.session.get(HelpRequest, request_id)


@payments_bp.route('/intent', methods=['POST'])
@token_required
def create_payment_intent(current_user_id):
    """Authorize the session price on the customer's card.

    Body:
        request_id: HelpRequest id
        payment_method_id: Stripe PaymentMethod id

    Returns:
        client_secret: for confirming the card on the client
        payment_intent_id: Stripe PaymentIntent ID
    """
    data = request.get_json(silent=True) or {}

    if not data.get('request_id') or not data.get('payment_method_id'):
        return jsonify({'error': 'Missing required parameters'}), 400

    help_request = _load_request(data)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if help_request.customer_id != current_user_id:
        return jsonify({'error': 'Only the customer can pay for this request'}), 403

    if help_request.status != RequestStatus.CLAIMED:
        return jsonify({'error': f'Cannot pay for a request that is {help_request.status}'}), 409

    try:
        result = StripeService.create_payment_intent(help_request, data['payment_method_id'])
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409
    except stripe.StripeError as e:
        db.session.rollback()
        current_app.logger.error(f'Error creating payment intent: {e}')
        return jsonify({'error': 'Failed to create payment intent'}), 500

    return jsonify({
        'client_secret': result['client_secret'],
        'payment_intent_id': result['payment_intent_id'],
        'amount': help_request.amount,
        'currency': help_request.currency
    }), 200


@payments_bp.route('/<int:request_id>/refresh', methods=['POST'])
@token_required
def refresh_payment(current_user_id, request_id):
    """Sync the payment status from Stripe after the client confirms the card."""
    help_request = db.session.get(HelpRequest, request_id)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if not help_request.is_participant(current_user_id):
        return jsonify({'error': 'Access denied'}), 403

    if not help_request.payment_intent_id:
        return jsonify({'error': 'No payment intent found'}), 400

    try:
        payment_status = StripeService.refresh_payment(help_request)
    except stripe.StripeError as e:
        current_app.logger.error(f'Error refreshing payment: {e}')
        return jsonify({'error': 'Failed to refresh payment'}), 500

    return jsonify({'payment_status': payment_status}), 200


@payments_bp.route('/capture', methods=['POST'])
@token_required
def capture_payment(current_user_id):
    """Helper captures the authorized amount."""
    data = request.get_json(silent=True) or {}

    help_request = _load_request(data)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if help_request.helper_id != current_user_id:
        return jsonify({'error': 'Only the helper can capture payment'}), 403

    if not help_request.payment_intent_id:
        return jsonify({'error': 'No payment intent found'}), 400

    try:
        StripeService.capture_payment(help_request)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except stripe.StripeError as e:
        current_app.logger.error(f'Error capturing payment: {e}')
        return jsonify({'error': 'Failed to capture payment'}), 500

    return jsonify({'success': True}), 200


@payments_bp.route('/cancel', methods=['POST'])
@token_required
def cancel_payment(current_user_id):
    """Either participant releases the card hold."""
    data = request.get_json(silent=True) or {}

    help_request = _load_request(data)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if not help_request.is_participant(current_user_id):
        return jsonify({'error': 'Only participants can cancel payment'}), 403

    if not help_request.payment_intent_id:
        return jsonify({'success': True}), 200

    try:
        StripeService.cancel_payment(help_request)
    except stripe.StripeError as e:
        current_app.logger.error(f'Error cancelling payment: {e}')
        return jsonify({'error': 'Failed to cancel payment'}), 500

    return jsonify({'success': True}), 200


@payments_bp.route('', methods=['GET'])
@token_required
def list_payments(current_user_id):
    """Payment history where the caller is customer or helper."""
    items = Payment.query.filter(
        db.or_(
            Payment.customer_id == current_user_id,
            Payment.helper_id == current_user_id
        )
    ).order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    return jsonify({
        'payments': [p.to_dict() for p in items],
        'total': len(items)
    }), 200


@payments_bp.route('/webhook', methods=['POST'])
def stripe_webhook():
    """Handle Stripe webhooks."""
    sig_header = request.headers.get('Stripe-Signature')
    if not sig_header:
        return jsonify({'error': 'Missing signature'}), 400

    try:
        event = StripeService.construct_event(request.get_data(), sig_header)
    except (ValueError, stripe.SignatureVerificationError) as e:
        current_app.logger.error(f'Webhook signature verification failed: {e}')
        return jsonify({'error': 'Invalid signature'}), 400

    result = StripeService.handle_webhook(event)
    current_app.logger.info(f"Stripe event {event['type']}: {result['status']}")

    return jsonify({'received': True}), 200


@payments_bp.route('/config', methods=['GET'])
def get_stripe_config():
    """Get Stripe public configuration."""
    return jsonify({
        'publishable_key': current_app.config['STRIPE_PUBLISHABLE_KEY'],
        'currency': current_app.config['STRIPE_CURRENCY']
    }), 200
