"""
Tests for AR session endpoints.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import stripe

from conftest import CHECKLIST, ZOHO_SESSION, ZOHO_TOKEN, fake_intent, zoho_response
from homepro import db
from homepro.models import HelpRequest, HelpSession, Payment, User
from homepro.services.zoho_lens import ZohoLensError

ZOHO_POST = 'homepro.services.zoho_lens.requests.post'


def _start(client, request_id, headers, checklist=CHECKLIST):
    return client.post('/api/sessions', json={
        'request_id': request_id,
        'safety_checklist': checklist,
    }, headers=headers)


class TestCreateSession:
    """Tests for POST /api/sessions"""

    def test_start_session(self, client, authorized_request, helper_headers):
        with patch(ZOHO_POST, side_effect=[zoho_response(ZOHO_TOKEN),
                                           zoho_response(ZOHO_SESSION)]) as post:
            response = _start(client, authorized_request['id'], helper_headers)

        assert response.status_code == 201
        assert response.json['zoho_session_id'] == 'zs_987'
        assert response.json['session_url'] == ZOHO_SESSION['customer_url']
        assert response.json['technician_url'] == ZOHO_SESSION['technician_url']
        assert post.call_args.kwargs['json']['title'] == 'Help Request: plumbing'

        stored = db.session.get(HelpRequest, authorized_request['id'])
        assert stored.status == 'in_session'
        assert stored.session_id == response.json['session_id']
        assert stored.zoho_technician_url == ZOHO_SESSION['technician_url']

        help_session = db.session.get(HelpSession, response.json['session_id'])
        assert help_session.status == 'active'
        assert help_session.safety_checklist_completed is True
        assert help_session.started_at is not None

    def test_request_id_required(self, client, helper_headers):
        response = client.post('/api/sessions', json={}, headers=helper_headers)

        assert response.status_code == 400
        assert response.json['error'] == 'Request ID is required'

    def test_only_assigned_helper(self, client, authorized_request, other_helper_headers):
        response = _start(client, authorized_request['id'], other_helper_headers)

        assert response.status_code == 403
        assert response.json['error'] == 'Only the assigned helper can create a session'

    def test_incomplete_checklist(self, client, authorized_request, helper_headers):
        response = _start(client, authorized_request['id'], helper_headers,
                          checklist=['power', 'water'])

        assert response.status_code == 400
        assert response.json['missing_items'] == ['ventilation', 'ppe', 'stable']

    def test_requires_payment(self, client, claimed_request, helper_headers):
        response = _start(client, claimed_request['id'], helper_headers)

        assert response.status_code == 409

    def test_unauthorized_payment_is_refreshed_first(self, client, payment_pending_request,
                                                     helper_headers):
        with patch('stripe.PaymentIntent.retrieve',
                   return_value=fake_intent(status='requires_payment_method')):
            response = _start(client, payment_pending_request['id'], helper_headers)

        assert response.status_code == 409
        assert response.json['error'] == 'Payment has not been authorized yet'

    def test_refresh_finds_authorization(self, client, payment_pending_request, helper_headers):
        with patch('stripe.PaymentIntent.retrieve',
                   return_value=fake_intent(status='requires_capture')), \
                patch(ZOHO_POST, side_effect=[zoho_response(ZOHO_TOKEN),
                                              zoho_response(ZOHO_SESSION)]):
            response = _start(client, payment_pending_request['id'], helper_headers)

        assert response.status_code == 201

    def test_zoho_failure(self, client, authorized_request, helper_headers):
        with patch('homepro.services.zoho_lens.create_session',
                   side_effect=ZohoLensError('Failed to create Zoho Lens session')):
            response = _start(client, authorized_request['id'], helper_headers)

        assert response.status_code == 500
        assert response.json['error'] == 'Failed to create Zoho Lens session'
        assert db.session.get(HelpRequest, authorized_request['id']).status == 'payment_pending'
        assert HelpSession.query.count() == 0


class TestGetSession:

    def test_participants_can_view(self, client, live_session, customer_headers, helper_headers):
        session_id = live_session['session_id']

        as_customer = client.get(f'/api/sessions/{session_id}', headers=customer_headers)
        as_helper = client.get(f'/api/sessions/{session_id}', headers=helper_headers)

        assert as_customer.status_code == 200
        assert 'technician_url' not in as_customer.json['session']
        assert as_helper.json['session']['technician_url'] == ZOHO_SESSION['technician_url']

    def test_outsider_denied(self, client, live_session, other_helper_headers):
        response = client.get(f"/api/sessions/{live_session['session_id']}",
                              headers=other_helper_headers)

        assert response.status_code == 403


class TestInvite:
    """Tests for POST /api/sessions/:id/invite"""

    def test_invite_texts_customer(self, client, live_session, helper_headers, twilio_client):
        twilio_client.messages.create.reset_mock()

        response = client.post(f"/api/sessions/{live_session['session_id']}/invite",
                               json={}, headers=helper_headers)

        assert response.status_code == 200
        body = twilio_client.messages.create.call_args.kwargs['body']
        assert body.endswith(f"/customer/session/{live_session['session_id']}")
        assert db.session.get(HelpSession, live_session['session_id']).sms_sent_at is not None

    def test_only_helper_invites(self, client, live_session, customer_headers):
        response = client.post(f"/api/sessions/{live_session['session_id']}/invite",
                               json={}, headers=customer_headers)

        assert response.status_code == 403
        assert response.json['error'] == 'Only the helper can send invites'

    def test_sms_not_configured(self, app, client, live_session, helper_headers):
        with patch.dict(app.config, {'TWILIO_ACCOUNT_SID': ''}):
            response = client.post(f"/api/sessions/{live_session['session_id']}/invite",
                                   json={}, headers=helper_headers)

        assert response.status_code == 400
        assert response.json['error'] == 'SMS service not configured'

    def test_twilio_failure(self, client, live_session, helper_headers, twilio_client):
        from twilio.base.exceptions import TwilioRestException
        twilio_client.messages.create.side_effect = TwilioRestException(
            400, 'https://api.twilio.com', msg='Unreachable', code=30003
        )

        response = client.post(f"/api/sessions/{live_session['session_id']}/invite",
                               json={}, headers=helper_headers)

        assert response.status_code == 500
        assert response.json['error'] == 'Failed to send SMS'


class TestEndSession:
    """Tests for POST /api/sessions/:id/end"""

    def test_end_is_best_effort(self, client, live_session, customer_headers):
        with patch('homepro.services.zoho_lens.end_session', side_effect=ZohoLensError('down')):
            response = client.post(f"/api/sessions/{live_session['session_id']}/end",
                                   headers=customer_headers)

        assert response.status_code == 200
        assert response.json == {'success': True}

    def test_outsider_cannot_end(self, client, live_session, other_helper_headers):
        response = client.post(f"/api/sessions/{live_session['session_id']}/end",
                               headers=other_helper_headers)

        assert response.status_code == 403
        assert response.json['error'] == 'Only session participants can end the session'


class TestCompleteSession:
    """Tests for POST /api/sessions/:id/complete"""

    def test_resolved_captures_payment(self, client, helper, live_session, helper_headers):
        with patch(ZOHO_POST, return_value=zoho_response({})) as post, \
                patch('stripe.PaymentIntent.capture') as capture:
            response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                                   json={'outcome': 'resolved', 'notes': 'Replaced the P-trap washer'},
                                   headers=helper_headers)

        assert response.status_code == 200
        assert response.json['payment'] == 'captured'
        assert response.json['request']['status'] == 'completed'
        assert response.json['request']['outcome'] == 'resolved'
        assert response.json['session']['status'] == 'ended'
        assert response.json['session']['overtime'] is False
        assert post.call_args.args[0].endswith('/sessions/zs_987/end')
        capture.assert_called_once_with('pi_test_123')
        assert db.session.get(User, helper['id']).completed_sessions == 1

    def test_unresolved_releases_hold(self, client, live_session, helper_headers):
        with patch(ZOHO_POST, return_value=zoho_response({})), \
                patch('stripe.PaymentIntent.cancel') as cancel:
            response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                                   json={'outcome': 'unresolved'}, headers=helper_headers)

        assert response.status_code == 200
        assert response.json['payment'] == 'cancelled'
        cancel.assert_called_once_with('pi_test_123')

    def test_capture_failure_still_completes(self, client, live_session, helper_headers):
        with patch(ZOHO_POST, return_value=zoho_response({})), \
                patch('stripe.PaymentIntent.capture', side_effect=stripe.StripeError('expired')):
            response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                                   json={'outcome': 'escalated'}, headers=helper_headers)

        assert response.status_code == 200
        assert response.json['request']['status'] == 'completed'
        assert response.json['payment_error']
        assert Payment.query.filter_by(payment_intent_id='pi_test_123').one().status == 'authorized'

    def test_completion_notifies_both(self, client, customer, helper, live_session, helper_headers):
        with patch(ZOHO_POST, return_value=zoho_response({})), \
                patch('stripe.PaymentIntent.capture'):
            client.post(f"/api/sessions/{live_session['session_id']}/complete",
                        json={'outcome': 'resolved'}, headers=helper_headers)

        from homepro.models import Notification
        helper_note = Notification.query.filter_by(user_id=helper['id'], type='session_completed').one()
        assert helper_note.message == 'Session completed. You earned $49.99'
        assert Notification.query.filter_by(user_id=customer['id'], type='session_completed').count() == 1

    def test_long_session_is_flagged_overtime(self, client, live_session, helper_headers):
        help_session = db.session.get(HelpSession, live_session['session_id'])
        help_session.started_at = datetime.utcnow() - timedelta(minutes=61)
        db.session.commit()

        with patch(ZOHO_POST, return_value=zoho_response({})), \
                patch('stripe.PaymentIntent.capture'):
            response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                                   json={'outcome': 'resolved'}, headers=helper_headers)

        assert response.status_code == 200
        assert response.json['session']['overtime'] is True
        assert response.json['session']['max_minutes'] == 60
        assert response.json['session']['duration'] >= 61 * 60

    def test_invalid_outcome(self, client, live_session, helper_headers):
        response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                               json={'outcome': 'maybe'}, headers=helper_headers)

        assert response.status_code == 400

    def test_customer_cannot_complete(self, client, live_session, customer_headers):
        response = client.post(f"/api/sessions/{live_session['session_id']}/complete",
                               json={'outcome': 'resolved'}, headers=customer_headers)

        assert response.status_code == 403

    def test_complete_twice(self, client, live_session, helper_headers):
        url = f"/api/sessions/{live_session['session_id']}/complete"
        with patch(ZOHO_POST, return_value=zoho_response({})), \
                patch('stripe.PaymentIntent.capture'):
            client.post(url, json={'outcome': 'resolved'}, headers=helper_headers)
            response = client.post(url, json={'outcome': 'resolved'}, headers=helper_headers)

        assert response.status_code == 409
