"""
Tests for authentication and profile endpoints.
"""

from unittest.mock import patch

import jwt
from faker import Faker

from homepro import db
from homepro.models import User

fake = Faker()


class TestRegister:
    """Tests for POST /api/auth/register"""

    def test_register_customer(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': fake.unique.email(),
            'password': 'securepass123',
            'display_name': 'Dana Fixer',
            'phone': '(415) 555-0123',
        })

        assert response.status_code == 201
        user = response.json['user']
        assert user['role'] == 'customer'
        assert user['phone'] == '+14155550123'
        assert 'is_available' not in user
        assert response.json['token']

    def test_register_helper_gets_helper_defaults(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': fake.unique.email(),
            'password': 'securepass123',
            'display_name': 'Sam Wrench',
            'role': 'helper',
        })

        assert response.status_code == 201
        user = response.json['user']
        assert user['is_available'] is False
        assert user['specialties'] == []
        assert user['completed_sessions'] == 0

    def test_register_duplicate_email(self, client, customer):
        response = client.post('/api/auth/register', json={
            'email': customer['email'],
            'password': 'securepass123',
            'display_name': 'Copy Cat',
        })

        assert response.status_code == 409

    def test_register_missing_fields(self, client, db_session):
        response = client.post('/api/auth/register', json={'email': fake.email()})

        assert response.status_code == 400

    def test_register_short_password(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': fake.unique.email(),
            'password': '123',
            'display_name': 'Short Pass',
        })

        assert response.status_code == 400
        assert 'at least 6' in response.json['error']

    def test_register_invalid_role(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': fake.unique.email(),
            'password': 'securepass123',
            'display_name': 'Bad Role',
            'role': 'admin',
        })

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/auth/login"""

    def test_login_success(self, app, client, customer):
        response = client.post('/api/auth/login', json={
            'email': customer['email'],
            'password': customer['password'],
        })

        assert response.status_code == 200
        payload = jwt.decode(
            response.json['token'], app.config['JWT_SECRET_KEY'], algorithms=['HS256']
        )
        assert payload['user_id'] == customer['id']
        assert payload['role'] == 'customer'

    def test_login_wrong_password(self, client, customer):
        response = client.post('/api/auth/login', json={
            'email': customer['email'],
            'password': 'wrongpassword',
        })

        assert response.status_code == 401

    def test_login_disabled_account(self, client, customer):
        db.session.get(User, customer['id']).is_active = False
        db.session.commit()

        response = client.post('/api/auth/login', json={
            'email': customer['email'],
            'password': customer['password'],
        })

        assert response.status_code == 403


class TestFirebaseLogin:
    """Tests for POST /api/auth/firebase"""

    def test_creates_user_on_first_login(self, client, db_session):
        identity = {'uid': 'fb-uid-1', 'email': 'New.User@Example.com', 'name': 'New User', 'picture': None}
        with patch('homepro.services.firebase.verify_firebase_token', return_value=identity):
            response = client.post('/api/auth/firebase', json={'id_token': 'header.payload.sig'})

        assert response.status_code == 201
        assert response.json['user']['email'] == 'new.user@example.com'
        assert User.query.filter_by(firebase_uid='fb-uid-1').one().is_active is True

        token = response.json['token']
        me = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert me.status_code == 200

    def test_links_existing_email(self, client, customer):
        identity = {'uid': 'fb-uid-2', 'email': customer['email'], 'name': None, 'picture': None}
        with patch('homepro.services.firebase.verify_firebase_token', return_value=identity):
            response = client.post('/api/auth/firebase', json={'id_token': 'header.payload.sig'})

        assert response.status_code == 200
        assert response.json['user']['id'] == customer['id']
        assert db.session.get(User, customer['id']).firebase_uid == 'fb-uid-2'

    def test_invalid_token(self, client, db_session):
        with patch('homepro.services.firebase.verify_firebase_token',
                   side_effect=ValueError('Token has expired')):
            response = client.post('/api/auth/firebase', json={'id_token': 'bad'})

        assert response.status_code == 401

    def test_missing_token(self, client, db_session):
        response = client.post('/api/auth/firebase', json={})

        assert response.status_code == 400


class TestProfile:
    """Tests for /api/auth/me, /role and /availability"""

    def test_me_requires_token(self, client, db_session):
        response = client.get('/api/auth/me')

        assert response.status_code == 401
        assert response.json['error'] == 'User must be authenticated'

    def test_me_rejects_bad_token(self, client, db_session):
        response = client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401
        assert response.json['error'] == 'Token is invalid'

    def test_get_me(self, client, customer, customer_headers):
        response = client.get('/api/auth/me', headers=customer_headers)

        assert response.status_code == 200
        assert response.json['user']['email'] == customer['email']

    def test_update_me(self, client, customer_headers):
        response = client.put('/api/auth/me', json={
            'display_name': 'Renamed Person',
            'phone': '415-555-0199',
        }, headers=customer_headers)

        assert response.status_code == 200
        assert response.json['user']['display_name'] == 'Renamed Person'
        assert response.json['user']['phone'] == '+14155550199'

    def test_update_me_rejects_unknown_fields(self, client, customer_headers):
        response = client.put('/api/auth/me', json={'role': 'helper'}, headers=customer_headers)

        assert response.status_code == 400

    def test_switch_role_returns_new_token(self, app, client, customer, customer_headers):
        response = client.put('/api/auth/role', json={'role': 'helper'}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json['role'] == 'helper'
        payload = jwt.decode(
            response.json['token'], app.config['JWT_SECRET_KEY'], algorithms=['HS256']
        )
        assert payload['role'] == 'helper'

    def test_leaving_helper_role_clears_availability(self, client, helper, helper_headers):
        response = client.put('/api/auth/role', json={'role': 'customer'}, headers=helper_headers)

        assert response.status_code == 200
        assert db.session.get(User, helper['id']).is_available is False

    def test_invalid_role(self, client, customer_headers):
        response = client.put('/api/auth/role', json={'role': 'owner'}, headers=customer_headers)

        assert response.status_code == 400

    def test_toggle_availability(self, client, helper, helper_headers):
        response = client.put('/api/auth/availability', json={'is_available': False},
                              headers=helper_headers)

        assert response.status_code == 200
        assert response.json == {'success': True, 'is_available': False}

    def test_availability_must_be_boolean(self, client, helper_headers):
        response = client.put('/api/auth/availability', json={'is_available': 'yes'},
                              headers=helper_headers)

        assert response.status_code == 400

    def test_customers_cannot_set_availability(self, client, customer_headers):
        response = client.put('/api/auth/availability', json={'is_available': True},
                              headers=customer_headers)

        assert response.status_code == 403
