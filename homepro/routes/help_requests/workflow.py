"""Help request workflow routes (claim, cancel)."""

import stripe
from flask import request, jsonify, current_app
from homepro.models import RequestStatus, UserRole
from homepro.routes.help_requests import requests_bp
from homepro.routes.help_requests.helpers import load_request_and_user
from homepro.services.lifecycle import InvalidTransition, transition
from homepro.services.stripe_service import StripeService
from homepro.utils import token_required, role_required, get_display_name

MAX_CANCEL_REASON_LENGTH = 500


@requests_bp.route('/<int:request_id>/claim', methods=['POST'])
@token_required
@role_required(UserRole.HELPER)
def claim_request(current_user_id, request_id):
    """Helper claims a pending request."""
    help_request, helper = load_request_and_user(request_id, current_user_id)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if not helper.is_available:
        return jsonify({'error': 'Set yourself as available before claiming requests'}), 400

    if help_request.customer_id == current_user_id:
        return jsonify({'error': 'You cannot claim your own request'}), 400

    if help_request.status != RequestStatus.PENDING:
        return jsonify({'error': 'Request has already been claimed'}), 409

    try:
        transition(
            help_request,
            RequestStatus.CLAIMED,
            helper_id=current_user_id,
            helper_name=get_display_name(helper, fallback='Helper')
        )
    except InvalidTransition:
        # Lost the race to another helper
        return jsonify({'error': 'Request has already been claimed'}), 409

    return jsonify({
        'message': 'Request claimed',
        'request': help_request.to_dict(viewer_id=current_user_id)
    }), 200


@requests_bp.route('/<int:request_id>/cancel', methods=['POST'])
@token_required
def cancel_request(current_user_id, request_id):
    """Customer or assigned helper cancels a request before its session starts.

    Any open card authorization is released first.
    """
    help_request, _ = load_request_and_user(request_id, current_user_id)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if not help_request.is_participant(current_user_id):
        return jsonify({'error': 'Only participants can cancel this request'}), 403

    if help_request.status not in RequestStatus.CANCELLABLE:
        return jsonify({'error': f'Request cannot be cancelled while {help_request.status}'}), 409

    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    if reason is not None and (not isinstance(reason, str) or len(reason) > MAX_CANCEL_REASON_LENGTH):
        return jsonify({'error': f'reason must be a string under {MAX_CANCEL_REASON_LENGTH} characters'}), 400

    try:
        StripeService.cancel_payment(help_request, reopen=False)
    except stripe.StripeError as e:
        current_app.logger.error(f'Error cancelling payment for request {request_id}: {e}')
        return jsonify({'error': 'Failed to cancel payment'}), 500

    try:
        transition(
            help_request,
            RequestStatus.CANCELLED,
            cancelled_by_id=current_user_id,
            cancel_reason=reason
        )
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409

    return jsonify({
        'message': 'Request cancelled',
        'request': help_request.to_dict(viewer_id=current_user_id)
    }), 200
