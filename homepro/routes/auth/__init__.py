"""Auth routes package.

This package organizes authentication-related routes into logical submodules:
- core: Registration, login and Firebase token exchange
- profile: Current user profile, role and helper availability
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

# Import all route modules (registers routes on auth_bp)
from homepro.routes.auth import core  # noqa: E402,F401
from homepro.routes.auth import profile  # noqa: E402,F401
