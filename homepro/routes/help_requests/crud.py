"""Help request CRUD routes (create, get, list)."""

from flask import request, jsonify, current_app
from homepro import db
from homepro.constants import get_base_price, normalize_category
from homepro.models import HelpRequest, RequestStatus, PaymentStatus, User, UserRole
from homepro.routes.help_requests import requests_bp
from homepro.routes.help_requests.helpers import can_view_request, load_request_and_user
from homepro.services import notifications
from homepro.utils import token_required, role_required, get_display_name, send_safe
from homepro.utils.validation import (
    validate_category,
    validate_description,
    validate_photo_urls,
)


@requests_bp.route('', methods=['POST'])
@token_required
@role_required(UserRole.CUSTOMER)
def create_request(current_user_id):
    """Create a help request.

    Body:
        category: one of the configured categories
        description: 20-1000 characters
        photo_urls: optional list of up to 5 URLs

    The price comes from the category; any amount sent by the client
    is ignored.
    """
    data = request.get_json(silent=True) or {}

    category = normalize_category(data.get('category'))
    description = data.get('description')
    photo_urls = data.get('photo_urls')

    for error in (
        validate_category(category or data.get('category')),
        validate_description(description),
        validate_photo_urls(photo_urls),
    ):
        if error:
            return jsonify({'error': error}), 400

    customer = db.session.get(User, current_user_id)

    try:
        help_request = HelpRequest(
            customer_id=current_user_id,
            customer_name=get_display_name(customer, fallback='Customer'),
            customer_phone=customer.phone,
            category=category,
            description=description.strip(),
            photo_urls=photo_urls or [],
            status=RequestStatus.PENDING,
            amount=get_base_price(category),
            currency=current_app.config['STRIPE_CURRENCY'],
            payment_status=PaymentStatus.NOT_STARTED
        )
        db.session.add(help_request)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Error creating request: {e}')
        return jsonify({'error': 'Failed to create request'}), 500

    send_safe(notifications.on_request_created, help_request)

    return jsonify({
        'message': 'Request created',
        'request': help_request.to_dict(viewer_id=current_user_id)
    }), 201


@requests_bp.route('/<int:request_id>', methods=['GET'])
@token_required
def get_request(current_user_id, request_id):
    help_request, user = load_request_and_user(request_id, current_user_id)
    if not help_request:
        return jsonify({'error': 'Request not found'}), 404

    if not can_view_request(help_request, user):
        return jsonify({'error': 'Access denied'}), 403

    return jsonify({'request': help_request.to_dict(viewer_id=current_user_id)}), 200


@requests_bp.route('', methods=['GET'])
@token_required
def list_my_requests(current_user_id):
    """The caller's own requests as a customer.

    Query params:
        status: Filter by status (optional)
    """
    status = request.args.get('status')
    if status and status not in RequestStatus.ALL:
        return jsonify({'error': 'Invalid status'}), 400

    query = HelpRequest.query.filter_by(customer_id=current_user_id)
    if status:
        query = query.filter_by(status=status)

    items = query.order_by(HelpRequest.created_at.desc(), HelpRequest.id.desc()).all()
    return jsonify({
        'requests': [r.to_dict(viewer_id=current_user_id) for r in items],
        'total': len(items)
    }), 200


@requests_bp.route('/pending', methods=['GET'])
@token_required
@role_required(UserRole.HELPER)
def list_pending(current_user_id):
    """Open requests helpers can claim, newest first."""
    items = HelpRequest.query.filter_by(status=RequestStatus.PENDING).order_by(
        HelpRequest.created_at.desc(), HelpRequest.id.desc()
    ).all()
    return jsonify({
        'requests': [r.to_dict() for r in items],
        'total': len(items)
    }), 200


@requests_bp.route('/claimed', methods=['GET'])
@token_required
@role_required(UserRole.HELPER)
def list_claimed(current_user_id):
    """The helper's active jobs."""
    items = HelpRequest.query.filter(
        HelpRequest.helper_id == current_user_id,
        HelpRequest.status.in_(RequestStatus.ACTIVE)
    ).order_by(HelpRequest.created_at.desc(), HelpRequest.id.desc()).all()
    return jsonify({
        'requests': [r.to_dict(viewer_id=current_user_id) for r in items],
        'total': len(items)
    }), 200
