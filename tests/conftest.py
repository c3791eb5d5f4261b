"""
Pytest configuration and fixtures for testing the HomePro API.
"""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from homepro import create_app, db
from homepro.models import User, UserRole

fake = Faker()

CUSTOMER_PHONE = '+14155550100'
CHECKLIST = ['power', 'water', 'ventilation', 'ppe', 'stable']


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture(autouse=True)
def twilio_client():
    """Keep every test off the real Twilio API."""
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid='SM_test_123')
    with patch('homepro.services.sms.get_twilio_client', return_value=client):
        yield client


def _create_user(password='testpassword123', role=UserRole.CUSTOMER, **overrides):
    """Helper to create a user with sensible defaults."""
    data = {
        'email': fake.unique.email(),
        'display_name': fake.name(),
        'role': role,
        'is_available': False,
        'completed_sessions': 0,
    }
    data.update(overrides)
    user = User(**data)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return {
        'id': user.id,
        'email': user.email,
        'display_name': user.display_name,
        'role': user.role,
        'password': password,
    }


@pytest.fixture
def customer(app, db_session):
    return _create_user(phone=CUSTOMER_PHONE)


@pytest.fixture
def helper(app, db_session):
    """An available helper."""
    return _create_user(role=UserRole.HELPER, is_available=True, specialties=['plumbing'])


@pytest.fixture
def other_helper(app, db_session):
    return _create_user(role=UserRole.HELPER, is_available=True)


def _get_token(client, email, password):
    """Login and return JWT token."""
    resp = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    data = resp.get_json()
    if not data or not data.get('token'):
        raise RuntimeError(f"Login failed: status={resp.status_code}, body={data}")
    return data['token']


def _headers(client, user):
    return {'Authorization': f"Bearer {_get_token(client, user['email'], user['password'])}"}


@pytest.fixture
def customer_headers(client, customer):
    return _headers(client, customer)


@pytest.fixture
def helper_headers(client, helper):
    return _headers(client, helper)


@pytest.fixture
def other_helper_headers(client, other_helper):
    return _headers(client, other_helper)


def request_payload(**overrides):
    payload = {
        'category': 'plumbing',
        'description': 'Kitchen sink is leaking under the cabinet when the tap runs.',
        'photo_urls': ['https://cdn.example.com/sink.jpg'],
    }
    payload.update(overrides)
    return payload


def fake_intent(intent_id='pi_test_123', status='requires_payment_method', **extra):
    intent = MagicMock()
    intent.id = intent_id
    intent.status = status
    intent.client_secret = f'{intent_id}_secret_abc'
    for key, value in extra.items():
        setattr(intent, key, value)
    return intent


def webhook_event(event_type, intent_id='pi_test_123', **intent_fields):
    obj = {'id': intent_id, 'object': 'payment_intent'}
    obj.update(intent_fields)
    return {'id': 'evt_test', 'type': event_type, 'data': {'object': obj}}


@pytest.fixture
def pending_request(client, customer_headers):
    """A request created through the API, waiting for a helper."""
    resp = client.post('/api/requests', json=request_payload(), headers=customer_headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['request']


@pytest.fixture
def claimed_request(client, pending_request, helper_headers):
    resp = client.post(f"/api/requests/{pending_request['id']}/claim", headers=helper_headers)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['request']


@pytest.fixture
def payment_pending_request(client, claimed_request, customer_headers):
    """Customer has created a PaymentIntent but the card is not authorized yet."""
    with patch('stripe.PaymentIntent.create', return_value=fake_intent()):
        resp = client.post('/api/payments/intent', json={
            'request_id': claimed_request['id'],
            'payment_method_id': 'pm_card_visa',
        }, headers=customer_headers)
    assert resp.status_code == 200, resp.get_json()
    return claimed_request


@pytest.fixture
def authorized_request(client, payment_pending_request):
    """Stripe has confirmed the hold on the customer's card."""
    event = webhook_event('payment_intent.amount_capturable_updated')
    with patch('stripe.Webhook.construct_event', return_value=event):
        resp = client.post(
            '/api/payments/webhook',
            data=b'{}',
            headers={'Stripe-Signature': 't=1,v1=abc'}
        )
    assert resp.status_code == 200
    return payment_pending_request


def zoho_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


ZOHO_TOKEN = {'access_token': 'zoho-access-token', 'expires_in': 3600}
ZOHO_SESSION = {
    'session_id': 'zs_987',
    'session_url': 'https://lens.zoho.com/s/zs_987',
    'technician_url': 'https://lens.zoho.com/tech/zs_987',
    'customer_url': 'https://lens.zoho.com/join/zs_987',
}


@pytest.fixture
def live_session(client, authorized_request, helper_headers):
    """An active session started by the helper."""
    with patch('homepro.services.zoho_lens.requests.post',
               side_effect=[zoho_response(ZOHO_TOKEN), zoho_response(ZOHO_SESSION)]):
        resp = client.post('/api/sessions', json={
            'request_id': authorized_request['id'],
            'safety_checklist': CHECKLIST,
        }, headers=helper_headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()
