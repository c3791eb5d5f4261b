"""Notification model for in-app notifications."""

from homepro import db
from datetime import datetime


class Notification(db.Model):
    """Model for storing user notifications."""

    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)
    message = db.Column(db.Text, nullable=False)

    request_id = db.Column(db.Integer, db.ForeignKey('help_requests.id'), nullable=True)
    session_id = db.Column(db.Integer, nullable=True)

    # Extra values the client renders (category, amount, helper_name, outcome...)
    data = db.Column(db.JSON, nullable=True)

    is_read = db.Column(db.Boolean, default=False, nullable=False, index=True)
    read_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<Notification {self.id} for User {self.user_id}: {self.type}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'message': self.message,
            'request_id': self.request_id,
            'session_id': self.session_id,
            'data': self.data or {},
            'is_read': self.is_read,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def mark_as_read(self):
        self.is_read = True
        self.read_at = datetime.utcnow()


class NotificationType:
    NEW_REQUEST = 'new_request'
    REQUEST_CLAIMED = 'request_claimed'
    SESSION_READY = 'session_ready'
    SESSION_COMPLETED = 'session_completed'
    REQUEST_CANCELLED = 'request_cancelled'
    PAYMENT_FAILED = 'payment_failed'
