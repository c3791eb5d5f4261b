"""Profile routes: current user, role and helper availability."""

from flask import request, jsonify, current_app
from homepro import db
from homepro.models import User, UserRole
from homepro.routes.auth import auth_bp
from homepro.utils import token_required, generate_token
from homepro.utils.validation import (
    validate_display_name,
    validate_phone,
    format_phone_e164,
)

# Allowed fields for profile update (prevent mass assignment)
PROFILE_ALLOWED_FIELDS = {'display_name', 'phone', 'photo_url', 'specialties'}
MAX_SPECIALTIES = 20


def _validate_profile_data(data):
    """Validate profile update fields. Returns error message or None."""
    unknown = set(data.keys()) - PROFILE_ALLOWED_FIELDS
    if unknown:
        return f"Unknown fields: {', '.join(sorted(unknown))}"

    if 'display_name' in data:
        error = validate_display_name(data['display_name'])
        if error:
            return error

    if data.get('phone'):
        error = validate_phone(data['phone'])
        if error:
            return error

    if data.get('photo_url') is not None:
        if not isinstance(data['photo_url'], str) or len(data['photo_url']) > 500:
            return 'photo_url must be a string under 500 characters'

    if 'specialties' in data and data['specialties'] is not None:
        val = data['specialties']
        if not isinstance(val, list):
            return 'specialties must be a list'
        if len(val) > MAX_SPECIALTIES:
            return f'specialties can have at most {MAX_SPECIALTIES} items'
        for item in val:
            if not isinstance(item, str) or len(item) > 50:
                return 'Each specialty must be a string under 50 characters'

    return None


@auth_bp.route('/me', methods=['GET'])
@token_required
def get_me(current_user_id):
    user = db.session.get(User, current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404
    return jsonify({'user': user.to_dict()}), 200


@auth_bp.route('/me', methods=['PUT'])
@token_required
def update_me(current_user_id):
    """Update the current user's profile."""
    user = db.session.get(User, current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    data = request.get_json(silent=True) or {}
    error = _validate_profile_data(data)
    if error:
        return jsonify({'error': error}), 400

    if 'display_name' in data:
        user.display_name = data['display_name'].strip()
    if 'phone' in data:
        user.phone = format_phone_e164(data['phone']) if data['phone'] else None
    if 'photo_url' in data:
        user.photo_url = data['photo_url']
    if 'specialties' in data:
        user.specialties = data['specialties'] or []

    db.session.commit()
    return jsonify({'message': 'Profile updated', 'user': user.to_dict()}), 200


@auth_bp.route('/role', methods=['PUT'])
@token_required
def set_user_role(current_user_id):
    """Switch the caller between customer and helper.

    Returns a fresh token because the role is embedded in it.
    """
    data = request.get_json(silent=True) or {}
    role = data.get('role')

    if role not in UserRole.ALL:
        return jsonify({'error': 'Invalid role'}), 400

    user = db.session.get(User, current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    try:
        user.role = role
        if role != UserRole.HELPER:
            user.is_available = False
        elif user.specialties is None:
            user.specialties = []
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Error setting user role: {e}')
        return jsonify({'error': 'Failed to set user role'}), 500

    return jsonify({'success': True, 'role': role, 'token': generate_token(user)}), 200


@auth_bp.route('/availability', methods=['PUT'])
@token_required
def update_availability(current_user_id):
    """Helpers toggle whether they receive new request notifications."""
    user = db.session.get(User, current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    if user.role != UserRole.HELPER:
        return jsonify({'error': 'Only helpers can update availability'}), 403

    data = request.get_json(silent=True) or {}
    is_available = data.get('is_available')
    if not isinstance(is_available, bool):
        return jsonify({'error': 'is_available must be a boolean'}), 400

    try:
        user.is_available = is_available
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Error updating availability: {e}')
        return jsonify({'error': 'Failed to update availability'}), 500

    return jsonify({'success': True, 'is_available': is_available}), 200
