"""Twilio SMS service for customer-facing text messages.

Messages carry links back into the web app (payment page, session join
page). Sending is optional: when Twilio credentials are missing the
notification triggers skip SMS and only write in-app notifications.
"""

import logging
from flask import current_app
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from homepro.utils.validation import format_phone_e164, validate_phone

logger = logging.getLogger(__name__)


class SmsError(ValueError):
    """Raised when a message could not be handed to Twilio."""


def is_sms_configured():
    config = current_app.config
    return bool(
        config.get('TWILIO_ACCOUNT_SID')
        and config.get('TWILIO_AUTH_TOKEN')
        and config.get('TWILIO_PHONE_NUMBER')
    )


def get_twilio_client():
    """Get Twilio client instance, or None when SMS is not configured."""
    if not is_sms_configured():
        return None
    return Client(current_app.config['TWILIO_ACCOUNT_SID'], current_app.config['TWILIO_AUTH_TOKEN'])


def send_sms(to, body):
    """Send one SMS.

    Args:
        to: Destination phone number in any common format
        body: Message text

    Returns:
        The Twilio message SID

    Raises:
        SmsError: if SMS is not configured, the number is invalid,
            or Twilio rejects the message
    """
    client = get_twilio_client()
    if client is None:
        raise SmsError('SMS service not configured')

    error = validate_phone(to)
    if error:
        raise SmsError(error)
    normalized = format_phone_e164(to)

    try:
        message = client.messages.create(
            body=body,
            from_=current_app.config['TWILIO_PHONE_NUMBER'],
            to=normalized
        )
    except TwilioRestException as e:
        logger.error(f"Twilio error sending SMS to {normalized}: {e}")
        raise SmsError(f'Twilio rejected the message (code {e.code})') from e

    logger.info(f"SMS sent to {normalized}, sid: {message.sid}")
    return message.sid


def app_link(path):
    return f"{current_app.config['APP_BASE_URL'].rstrip('/')}{path}"


def claimed_message(helper_name, request_id):
    return (
        f"Good news! {helper_name} has claimed your help request. "
        f"Please complete payment to start your session: {app_link(f'/customer/payment/{request_id}')}"
    )


def session_ready_message(session_id):
    return f"Your HomePro session is ready! Join now: {app_link(f'/customer/session/{session_id}')}"


def session_invite_message(session_id):
    return f"Join your HomePro help session: {app_link(f'/customer/session/{session_id}')}"
