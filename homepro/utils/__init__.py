"""Shared utilities for the HomePro backend.

This package contains reusable utilities that are shared across
multiple route files to reduce code duplication.
"""

from homepro.utils.auth import (
    token_required,
    role_required,
    generate_token,
    decode_token,
)
from homepro.utils.user_helpers import get_display_name, send_safe

__all__ = [
    'token_required',
    'role_required',
    'generate_token',
    'decode_token',
    'get_display_name',
    'send_safe',
]
