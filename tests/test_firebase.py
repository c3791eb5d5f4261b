"""
Tests for Firebase ID token verification.
"""

import time
from unittest.mock import patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from homepro.services import firebase

PROJECT = 'homepro-test'


@pytest.fixture(scope='module')
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _id_token(key, kid='kid-1', **overrides):
    now = int(time.time())
    claims = {
        'iss': f'https://securetoken.google.com/{PROJECT}',
        'aud': PROJECT,
        'sub': 'firebase-uid-123',
        'email': 'pat@example.com',
        'name': 'Pat Doe',
        'iat': now,
        'exp': now + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm='RS256', headers={'kid': kid})


@pytest.fixture
def google_keys(signing_key):
    with patch('homepro.services.firebase.get_google_public_keys',
               return_value={'kid-1': signing_key.public_key()}) as keys:
        yield keys


def test_valid_token(app, signing_key, google_keys):
    with app.app_context():
        identity = firebase.verify_firebase_token(_id_token(signing_key))

    assert identity == {
        'uid': 'firebase-uid-123',
        'email': 'pat@example.com',
        'name': 'Pat Doe',
        'picture': None,
    }


def test_expired_token(app, signing_key, google_keys):
    token = _id_token(signing_key, exp=int(time.time()) - 10)

    with app.app_context(), pytest.raises(ValueError, match='expired'):
        firebase.verify_firebase_token(token)


def test_wrong_audience(app, signing_key, google_keys):
    token = _id_token(signing_key, aud='someone-else')

    with app.app_context(), pytest.raises(ValueError, match='Invalid token'):
        firebase.verify_firebase_token(token)


def test_unknown_key_forces_refresh(app, signing_key, google_keys):
    token = _id_token(signing_key, kid='rotated')

    with app.app_context(), pytest.raises(ValueError, match='unknown key'):
        firebase.verify_firebase_token(token)

    google_keys.assert_called_with(force_refresh=True)


def test_garbage_token(app):
    with app.app_context(), pytest.raises(ValueError):
        firebase.verify_firebase_token('not-a-jwt')
