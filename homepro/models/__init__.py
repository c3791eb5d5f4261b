"""Database models for the HomePro Assist backend."""

from .user import User, UserRole
from .help_request import HelpRequest, RequestStatus
from .help_session import HelpSession, SessionStatus
from .payment import Payment, PaymentStatus
from .notification import Notification, NotificationType
from .system_token import SystemToken

__all__ = [
    'User', 'UserRole',
    'HelpRequest', 'RequestStatus',
    'HelpSession', 'SessionStatus',
    'Payment', 'PaymentStatus',
    'Notification', 'NotificationType',
    'SystemToken',
]
