"""Input validators shared by the routes.

Each validator returns an error message, or None when the value is valid.
"""

import re

from homepro.constants import VALID_CATEGORIES

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_REGEX = re.compile(r'^\+?[1-9]\d{9,14}$')
PHONE_STRIP_REGEX = re.compile(r'[\s\-\(\)]')

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
DISPLAY_NAME_MIN_LENGTH = 2
DISPLAY_NAME_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 1000
MAX_PHOTOS = 5


def validate_email(email):
    if not email or not str(email).strip():
        return 'Email is required'
    email = str(email).strip()
    if len(email) > 254 or not EMAIL_REGEX.match(email):
        return 'Please enter a valid email address'
    return None


def validate_password(password):
    if not password:
        return 'Password is required'
    if len(password) < PASSWORD_MIN_LENGTH:
        return f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
    if len(password) > PASSWORD_MAX_LENGTH:
        return f'Password must be less than {PASSWORD_MAX_LENGTH} characters'
    return None


def validate_display_name(name):
    if not name or not str(name).strip():
        return 'Name is required'
    name = str(name).strip()
    if len(name) < DISPLAY_NAME_MIN_LENGTH:
        return f'Name must be at least {DISPLAY_NAME_MIN_LENGTH} characters'
    if len(name) > DISPLAY_NAME_MAX_LENGTH:
        return f'Name must be less than {DISPLAY_NAME_MAX_LENGTH} characters'
    return None


def validate_phone(phone):
    if not phone or not str(phone).strip():
        return 'Phone number is required'
    cleaned = PHONE_STRIP_REGEX.sub('', str(phone))
    if not PHONE_REGEX.match(cleaned):
        return 'Please enter a valid phone number'
    return None


def format_phone_e164(phone):
    """Normalize a phone number to E.164, assuming US when no country code.

    >>> format_phone_e164('(415) 555-0100')
    '+14155550100'
    """
    if not phone:
        return None
    cleaned = PHONE_STRIP_REGEX.sub('', str(phone))
    if not cleaned.startswith('+'):
        return '+1' + cleaned
    return cleaned


def validate_category(category):
    if not category:
        return 'Please select a category'
    if not isinstance(category, str) or category not in VALID_CATEGORIES:
        return f"Invalid category. Must be one of: {', '.join(sorted(VALID_CATEGORIES))}"
    return None


def validate_description(description):
    if not isinstance(description, str):
        return 'Description is required'
    length = len(description.strip())
    if length < DESCRIPTION_MIN_LENGTH:
        return f'Description must be at least {DESCRIPTION_MIN_LENGTH} characters'
    if length > DESCRIPTION_MAX_LENGTH:
        return f'Description must be less than {DESCRIPTION_MAX_LENGTH} characters'
    return None


def validate_photo_urls(photo_urls):
    if photo_urls is None:
        return None
    if not isinstance(photo_urls, list):
        return 'photo_urls must be a list'
    if len(photo_urls) > MAX_PHOTOS:
        return f'At most {MAX_PHOTOS} photos are allowed'
    for url in photo_urls:
        if not isinstance(url, str) or not url.startswith(('http://', 'https://')):
            return 'Each photo must be an http(s) URL'
        if len(url) > 1000:
            return 'Photo URL is too long'
    return None
