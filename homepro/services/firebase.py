"""Firebase ID token verification for the sign-in exchange.

The SPA signs users in with Firebase Auth and posts the resulting ID token
to /api/auth/firebase once. We check it against Google's signing
certificates and the configured project, then issue our own API token.
"""

import logging
import re
import time

import jwt
import requests
from cryptography import x509
from flask import current_app

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = 'https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com'
DEFAULT_CERTS_MAX_AGE = 3600
MAX_AGE_REGEX = re.compile(r'max-age=(\d+)')

# kid -> public key, shared by every request in this process
_signing_keys = {'keys': {}, 'expires_at': 0.0}


def _certs_max_age(response):
    match = MAX_AGE_REGEX.search(response.headers.get('Cache-Control', ''))
    return int(match.group(1)) if match else DEFAULT_CERTS_MAX_AGE


def _parse_certificates(certs):
    keys = {}
    for kid, pem in certs.items():
        try:
            keys[kid] = x509.load_pem_x509_certificate(pem.encode('utf-8')).public_key()
        except ValueError as e:
            logger.warning(f"Skipping unreadable Google certificate {kid}: {e}")
    return keys


def get_google_public_keys(force_refresh=False):
    """Return Google's current signing keys, keyed by kid.

    Keys are kept for as long as Google's Cache-Control header allows.
    If Google is unreachable the last known keys are used.
    """
    now = time.time()
    if not force_refresh and _signing_keys['keys'] and now < _signing_keys['expires_at']:
        return _signing_keys['keys']

    try:
        response = requests.get(GOOGLE_CERTS_URL, timeout=10)
        response.raise_for_status()
        keys = _parse_certificates(response.json())
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Could not fetch Google signing certificates: {e}")
        keys = {}
        max_age = 0
    else:
        max_age = _certs_max_age(response)

    if not keys:
        if _signing_keys['keys']:
            return _signing_keys['keys']
        raise ValueError('Could not load Firebase signing keys')

    _signing_keys.update(keys=keys, expires_at=now + max_age)
    return keys


def _signing_key_for(id_token):
    try:
        header = jwt.get_unverified_header(id_token)
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Invalid token: {e}")

    if header.get('alg') != 'RS256':
        raise ValueError(f"Unexpected algorithm: {header.get('alg')}")
    kid = header.get('kid')
    if not kid:
        raise ValueError('Token missing key ID (kid)')

    keys = get_google_public_keys()
    if kid not in keys:
        # Google rotates keys a few times a day
        keys = get_google_public_keys(force_refresh=True)
    if kid not in keys:
        raise ValueError(f"Token signed with unknown key: {kid}")
    return keys[kid]


def verify_firebase_token(id_token):
    """Verify a Firebase ID token and return who it belongs to.

    Returns:
        dict: uid, email, name and picture (the last three may be None)

    Raises:
        ValueError: if the token is malformed, expired, issued for another
            project or signed with a key Google does not publish
    """
    if not id_token:
        raise ValueError('ID token is required')

    project_id = current_app.config.get('FIREBASE_PROJECT_ID')
    if not project_id:
        raise ValueError('Firebase project is not configured')

    try:
        claims = jwt.decode(
            id_token,
            _signing_key_for(id_token),
            algorithms=['RS256'],
            audience=project_id,
            issuer=f'https://securetoken.google.com/{project_id}',
            options={'require': ['exp', 'iat', 'sub']}
        )
    except jwt.ExpiredSignatureError:
        raise ValueError('Token has expired')
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Invalid token: {e}")

    if not claims['sub']:
        raise ValueError('Token does not contain subject (user ID)')

    return {
        'uid': claims['sub'],
        'email': claims.get('email'),
        'name': claims.get('name'),
        'picture': claims.get('picture'),
    }
