"""Core authentication routes: registration, login and Firebase exchange."""

from flask import request, jsonify, current_app
from homepro import db, limiter
from homepro.models import User, UserRole
from homepro.routes.auth import auth_bp
from homepro.utils import generate_token
from homepro.utils.validation import (
    validate_email,
    validate_password,
    validate_display_name,
    validate_phone,
    format_phone_e164,
)


def _new_user(email, display_name='', phone=None, role=UserRole.CUSTOMER, **extra):
    """Build a user with the defaults every new account gets."""
    return User(
        email=email,
        display_name=display_name or '',
        phone=phone,
        role=role,
        is_active=True,
        is_available=False,
        completed_sessions=0,
        specialties=[] if role == UserRole.HELPER else None,
        **extra
    )


def _auth_response(user, message, status_code):
    return jsonify({
        'message': message,
        'token': generate_token(user),
        'user': user.to_dict()
    }), status_code


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    """Register a new customer or helper account.

    Body:
        email, password, display_name: required
        phone: optional, normalized to E.164
        role: 'customer' (default) or 'helper'
    """
    try:
        data = request.get_json(silent=True)

        if not data or not all(k in data for k in ['email', 'password', 'display_name']):
            return jsonify({'error': 'Missing required fields'}), 400

        email = str(data['email']).strip().lower()
        password = data['password']
        display_name = str(data['display_name']).strip()
        phone = data.get('phone')
        role = data.get('role') or UserRole.CUSTOMER

        for error in (
            validate_email(email),
            validate_password(password),
            validate_display_name(display_name),
            validate_phone(phone) if phone else None,
        ):
            if error:
                return jsonify({'error': error}), 400

        if role not in UserRole.ALL:
            return jsonify({'error': 'Invalid role'}), 400

        if User.query.filter_by(email=email).first():
            return jsonify({'error': 'Email already exists'}), 409

        user = _new_user(
            email=email,
            display_name=display_name,
            phone=format_phone_e164(phone) if phone else None,
            role=role
        )
        user.set_password(password)

        db.session.add(user)
        db.session.commit()

        current_app.logger.info(f"Created user {user.id} ({user.role})")
        return _auth_response(user, 'User registered successfully', 201)
    except Exception:
        db.session.rollback()
        raise


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Authenticate user and return JWT token."""
    data = request.get_json(silent=True)

    if not data or not all(k in data for k in ['email', 'password']):
        return jsonify({'error': 'Missing email or password'}), 400

    user = User.query.filter_by(email=str(data['email']).strip().lower()).first()

    if not user or not user.check_password(data['password']):
        return jsonify({'error': 'Invalid email or password'}), 401

    if not user.is_active:
        return jsonify({'error': 'Account is disabled'}), 403

    return _auth_response(user, 'Login successful', 200)


@auth_bp.route('/firebase', methods=['POST'])
@limiter.limit("10 per minute")
def firebase_login():
    """Exchange a Firebase ID token for an API token.

    The account is matched by Firebase uid, then by email, and created
    with the default customer profile if neither exists.
    """
    from homepro.services.firebase import verify_firebase_token

    data = request.get_json(silent=True)
    if not data or not data.get('id_token'):
        return jsonify({'error': 'Firebase ID token is required'}), 400

    try:
        identity = verify_firebase_token(data['id_token'])
    except ValueError as e:
        current_app.logger.warning(f"Firebase token verification failed: {e}")
        return jsonify({'error': str(e)}), 401

    try:
        user = User.query.filter_by(firebase_uid=identity['uid']).first()
        email = (identity.get('email') or '').strip().lower()

        if not user and email:
            user = User.query.filter_by(email=email).first()
            if user:
                user.firebase_uid = identity['uid']

        is_new_user = user is None
        if is_new_user:
            if not email:
                return jsonify({'error': 'Token does not contain an email'}), 401
            user = _new_user(
                email=email,
                display_name=identity.get('name') or '',
                firebase_uid=identity['uid'],
                photo_url=identity.get('picture') or None
            )
            db.session.add(user)

        if not user.is_active:
            db.session.rollback()
            return jsonify({'error': 'Account is disabled'}), 403

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if is_new_user:
        current_app.logger.info(f"Created user {user.id} from Firebase uid {identity['uid']}")
    return _auth_response(
        user,
        'User registered successfully' if is_new_user else 'Login successful',
        201 if is_new_user else 200
    )
