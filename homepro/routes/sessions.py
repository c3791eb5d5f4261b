"""AR session routes: start, view, invite, end and complete a help session."""

from datetime import datetime

import stripe
from flask import Blueprint, request, jsonify, current_app
from homepro import db
from homepro.constants import MAX_SESSION_MINUTES, SESSION_OUTCOMES, missing_safety_items
from homepro.models import (
    HelpRequest,
    HelpSession,
    PaymentStatus,
    RequestStatus,
    SessionStatus,
    User,
)
from homepro.services import realtime, sms, zoho_lens
from homepro.services.lifecycle import InvalidTransition, transition
from homepro.services.stripe_service import StripeService
from homepro.utils import token_required

sessions_bp = Blueprint('sessions', __name__)

MAX_NOTES_LENGTH = 2000


def _refresh_pending_payment(help_request):
    """Give a just-confirmed card a chance to show up before we refuse to start."""
    if help_request.payment_status != PaymentStatus.PENDING:
        return
    try:
        StripeService.refresh_payment(help_request)
    except (stripe.StripeError, ValueError) as e:
        current_app.logger.warning(f'Could not refresh payment for request {help_request.id}: {e}')


@sessions_bp.route('', methods=['POST'])
@token_required
def create_zoho_session(current_user_id):
    """Start the live session for a paid request.

    Body:
        request_id: HelpRequest id
        safety_checklist: list of confirmed checklist item ids
    """
    data = request.get_json(silent=True) or {}
    request_id = data.get('request_id')

    if not request_id:
        return jsonify({'error': 'Request ID is required'}), 400

    help_request = db.session.get(HelpRequest, request_id)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if help_request.helper_id != current_user_id:
        return jsonify({'error': 'Only the assigned helper can create a session'}), 403

    missing = missing_safety_items(data.get('safety_checklist'))
    if missing:
        return jsonify({
            'error': 'Complete the safety checklist before starting',
            'missing_items': missing
        }), 400

    if help_request.status != RequestStatus.PAYMENT_PENDING:
        return jsonify({'error': f'Cannot start a session while request is {help_request.status}'}), 409

    _refresh_pending_payment(help_request)
    if help_request.payment_status != PaymentStatus.AUTHORIZED:
        return jsonify({'error': 'Payment has not been authorized yet'}), 409

    try:
        zoho_session = zoho_lens.create_session(
            title=f'Help Request: {help_request.category}',
            customer_name=help_request.customer_name,
            description=help_request.description
        )
    except zoho_lens.ZohoLensError as e:
        current_app.logger.error(f'Error creating Zoho session: {e}')
        return jsonify({'error': 'Failed to create Zoho Lens session'}), 500

    help_session = HelpSession(
        request_id=help_request.id,
        customer_id=help_request.customer_id,
        helper_id=current_user_id,
        zoho_session_id=zoho_session['session_id'],
        technician_url=zoho_session['technician_url'],
        customer_join_url=zoho_session['customer_url'],
        status=SessionStatus.ACTIVE,
        safety_checklist_completed=True,
        started_at=datetime.utcnow()
    )
    db.session.add(help_session)
    db.session.flush()

    try:
        transition(
            help_request,
            RequestStatus.IN_SESSION,
            session_id=help_session.id,
            zoho_session_id=zoho_session['session_id'],
            zoho_technician_url=zoho_session['technician_url'],
            zoho_customer_url=zoho_session['customer_url']
        )
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409

    realtime.broadcast_session_updated(help_session)

    return jsonify({
        'session_id': help_session.id,
        'zoho_session_id': zoho_session['session_id'],
        'session_url': zoho_session['customer_url'],
        'technician_url': zoho_session['technician_url'],
        'session': help_session.to_dict(viewer_id=current_user_id)
    }), 201


@sessions_bp.route('/<int:session_id>', methods=['GET'])
@token_required
def get_session(current_user_id, session_id):
    help_session = db.session.get(HelpSession, session_id)
    if not help_session:
        return jsonify({'error': 'Session not found'}), 404

    if not help_session.is_participant(current_user_id):
        return jsonify({'error': 'Access denied'}), 403

    return jsonify({'session': help_session.to_dict(viewer_id=current_user_id)}), 200


@sessions_bp.route('/<int:session_id>/invite', methods=['POST'])
@token_required
def send_session_invite(current_user_id, session_id):
    """Text the customer a link to join the session.

    Body:
        phone: optional, defaults to the customer's phone on file
    """
    data = request.get_json(silent=True) or {}

    help_session = db.session.get(HelpSession, session_id)
    if not help_session:
        return jsonify({'error': 'Session not found'}), 404

    if help_session.helper_id != current_user_id:
        return jsonify({'error': 'Only the helper can send invites'}), 403

    phone = data.get('phone')
    if not phone:
        customer = db.session.get(User, help_session.customer_id)
        phone = customer.phone if customer else None
    if not phone:
        return jsonify({'error': 'Session ID and phone are required'}), 400

    if not sms.is_sms_configured():
        return jsonify({'error': 'SMS service not configured'}), 400

    try:
        sms.send_sms(phone, sms.session_invite_message(help_session.id))
    except sms.SmsError as e:
        current_app.logger.error(f'Error sending SMS: {e}')
        if 'valid phone' in str(e):
            return jsonify({'error': str(e)}), 400
        return jsonify({'error': 'Failed to send SMS'}), 500

    help_session.sms_sent_at = datetime.utcnow()
    db.session.commit()

    return jsonify({'success': True}), 200


@sessions_bp.route('/<int:session_id>/end', methods=['POST'])
@token_required
def end_zoho_session(current_user_id, session_id):
    """Close the Zoho Lens room. Vendor errors do not fail the call."""
    help_session = db.session.get(HelpSession, session_id)
    if not help_session:
        return jsonify({'error': 'Session not found'}), 404

    if not help_session.is_participant(current_user_id):
        return jsonify({'error': 'Only session participants can end the session'}), 403

    if help_session.zoho_session_id:
        try:
            zoho_lens.end_session(help_session.zoho_session_id)
        except zoho_lens.ZohoLensError as e:
            current_app.logger.error(f'Error ending Zoho session: {e}')

    return jsonify({'success': True}), 200


@sessions_bp.route('/<int:session_id>/complete', methods=['POST'])
@token_required
def complete_session(current_user_id, session_id):
    """Helper records the outcome; the request completes and payment settles.

    Body:
        outcome: 'resolved', 'unresolved' or 'escalated'
        notes: optional
    """
    help_session = db.session.get(HelpSession, session_id)
    if not help_session:
        return jsonify({'error': 'Session not found'}), 404

    if help_session.helper_id != current_user_id:
        return jsonify({'error': 'Only the helper can complete the session'}), 403

    data = request.get_json(silent=True) or {}
    outcome = data.get('outcome')
    notes = data.get('notes')

    if outcome not in SESSION_OUTCOMES:
        return jsonify({'error': f"outcome must be one of: {', '.join(SESSION_OUTCOMES)}"}), 400
    if notes is not None and (not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH):
        return jsonify({'error': f'notes must be a string under {MAX_NOTES_LENGTH} characters'}), 400

    if help_session.status == SessionStatus.ENDED:
        return jsonify({'error': 'Session has already been completed'}), 409

    help_request = db.session.get(HelpRequest, help_session.request_id)
    if not help_request or help_request.status != RequestStatus.IN_SESSION:
        return jsonify({'error': 'Request is not in session'}), 409

    if help_session.zoho_session_id:
        try:
            zoho_lens.end_session(help_session.zoho_session_id)
        except zoho_lens.ZohoLensError as e:
            current_app.logger.error(f'Error ending Zoho session: {e}')

    help_session.end(outcome=outcome, notes=notes)
    if help_session.overtime:
        current_app.logger.warning(
            f'Session {help_session.id} ran {help_session.duration // 60} minutes, '
            f'over the {MAX_SESSION_MINUTES} minute limit'
        )
    helper = db.session.get(User, current_user_id)
    helper.completed_sessions = (helper.completed_sessions or 0) + 1

    try:
        transition(help_request, RequestStatus.COMPLETED, outcome=outcome)
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409

    realtime.broadcast_session_updated(help_session)

    payment_result, payment_error = None, None
    try:
        payment_result = StripeService.settle_for_outcome(help_request, outcome)
    except (stripe.StripeError, ValueError) as e:
        current_app.logger.error(f'Error settling payment for request {help_request.id}: {e}')
        payment_error = 'Payment could not be settled; retry the capture'

    return jsonify({
        'success': True,
        'session': help_session.to_dict(viewer_id=current_user_id),
        'request': help_request.to_dict(viewer_id=current_user_id),
        'payment': payment_result,
        'payment_error': payment_error
    }), 200
