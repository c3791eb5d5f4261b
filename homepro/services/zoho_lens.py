"""Zoho Lens client for AR-guided remote sessions.

Zoho uses OAuth refresh tokens. The short-lived access token is cached in
the system_tokens table so every worker shares it, and is refreshed five
minutes before Zoho says it expires.
"""

import logging
import time

import requests
from flask import current_app

from homepro import db
from homepro.models import SystemToken

logger = logging.getLogger(__name__)

TOKEN_KEY = 'zoho_token'
TOKEN_EXPIRY_MARGIN_SECONDS = 300


class ZohoLensError(ValueError):
    """Raised when Zoho Lens cannot be reached or rejects a call."""


def is_zoho_configured():
    config = current_app.config
    return all(config.get(key) for key in (
        'ZOHO_CLIENT_ID', 'ZOHO_CLIENT_SECRET', 'ZOHO_REFRESH_TOKEN', 'ZOHO_ORG_ID'
    ))


def _timeout():
    return current_app.config.get('ZOHO_TIMEOUT_SECONDS', 15)


def _sessions_url():
    base = current_app.config['ZOHO_LENS_URL'].rstrip('/')
    return f"{base}/api/v1/organizations/{current_app.config['ZOHO_ORG_ID']}/sessions"


def get_access_token():
    """Return a valid Zoho access token, refreshing it when the cached one expired."""
    cached = db.session.get(SystemToken, TOKEN_KEY)
    if cached and cached.is_valid():
        return cached.access_token

    if not is_zoho_configured():
        raise ZohoLensError('Zoho Lens is not configured')

    config = current_app.config
    try:
        response = requests.post(
            f"{config['ZOHO_ACCOUNTS_URL'].rstrip('/')}/oauth/v2/token",
            params={
                'refresh_token': config['ZOHO_REFRESH_TOKEN'],
                'client_id': config['ZOHO_CLIENT_ID'],
                'client_secret': config['ZOHO_CLIENT_SECRET'],
                'grant_type': 'refresh_token',
            },
            timeout=_timeout()
        )
        response.raise_for_status()
        token_data = response.json()
        access_token = token_data['access_token']
        expires_in = int(token_data.get('expires_in', 3600))
    except (requests.RequestException, KeyError, ValueError) as e:
        logger.error(f"Zoho token refresh failed: {e}")
        raise ZohoLensError('Failed to refresh Zoho access token') from e

    expires_at = time.time() + expires_in - TOKEN_EXPIRY_MARGIN_SECONDS
    if cached:
        cached.access_token = access_token
        cached.expires_at = expires_at
    else:
        db.session.add(SystemToken(key=TOKEN_KEY, access_token=access_token, expires_at=expires_at))
    db.session.commit()

    logger.info('Zoho access token refreshed')
    return access_token


def create_session(title, customer_name, description):
    """Create a Lens session.

    Returns:
        dict: {
            'session_id': Zoho session id,
            'session_url': generic session URL,
            'technician_url': URL the helper opens,
            'customer_url': URL the customer opens
        }

    Raises:
        ZohoLensError: if the token refresh or the API call fails
    """
    access_token = get_access_token()

    try:
        response = requests.post(
            _sessions_url(),
            json={
                'title': title,
                'customer_name': customer_name,
                'description': description,
            },
            headers={
                'Authorization': f'Bearer {access_token}',
                'Content-Type': 'application/json',
            },
            timeout=_timeout()
        )
        response.raise_for_status()
        data = response.json()
        session = {
            'session_id': data['session_id'],
            'session_url': data.get('session_url'),
            'technician_url': data.get('technician_url'),
            'customer_url': data.get('customer_url'),
        }
    except (requests.RequestException, KeyError, ValueError) as e:
        logger.error(f"Zoho session creation failed: {e}")
        raise ZohoLensError('Failed to create Zoho Lens session') from e

    logger.info(f"Zoho session {session['session_id']} created")
    return session


def end_session(zoho_session_id):
    """End a Lens session.

    Raises:
        ZohoLensError: if the token refresh or the API call fails
    """
    access_token = get_access_token()

    try:
        response = requests.post(
            f"{_sessions_url()}/{zoho_session_id}/end",
            json={},
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=_timeout()
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Zoho session {zoho_session_id} end failed: {e}")
        raise ZohoLensError('Failed to end Zoho Lens session') from e

    logger.info(f"Zoho session {zoho_session_id} ended")
