"""Help request model: a customer's ask for a live guided session."""

from datetime import datetime
from homepro import db


class RequestStatus:
    PENDING = 'pending'
    CLAIMED = 'claimed'
    PAYMENT_PENDING = 'payment_pending'
    IN_SESSION = 'in_session'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    ALL = (PENDING, CLAIMED, PAYMENT_PENDING, IN_SESSION, COMPLETED, CANCELLED)
    ACTIVE = (CLAIMED, PAYMENT_PENDING, IN_SESSION)  # a helper's open jobs
    CANCELLABLE = (PENDING, CLAIMED, PAYMENT_PENDING)


class HelpRequest(db.Model):

    __tablename__ = 'help_requests'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    customer_name = db.Column(db.String(100), nullable=False, default='Customer')
    customer_phone = db.Column(db.String(20), nullable=True)

    category = db.Column(db.String(50), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    photo_urls = db.Column(db.JSON, nullable=True)

    status = db.Column(db.String(20), default=RequestStatus.PENDING, nullable=False, index=True)

    helper_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    helper_name = db.Column(db.String(100), nullable=True)
    claimed_at = db.Column(db.DateTime, nullable=True)

    session_id = db.Column(db.Integer, nullable=True)
    zoho_session_id = db.Column(db.String(255), nullable=True)
    zoho_technician_url = db.Column(db.String(1000), nullable=True)
    zoho_customer_url = db.Column(db.String(1000), nullable=True)

    # Amounts in cents
    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), default='usd', nullable=False)
    payment_intent_id = db.Column(db.String(255), nullable=True, index=True)
    payment_status = db.Column(db.String(20), default='not_started', nullable=False)

    outcome = db.Column(db.String(20), nullable=True)
    cancelled_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    cancel_reason = db.Column(db.String(500), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def is_participant(self, user_id):
        return user_id is not None and user_id in (self.customer_id, self.helper_id)

    def to_dict(self, viewer_id=None):
        """Serialize the request.

        The technician URL opens the helper's side of the AR session, so it is
        only included when the viewer is the assigned helper.
        """
        data = {
            'id': self.id,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'category': self.category,
            'description': self.description,
            'photo_urls': self.photo_urls or [],
            'status': self.status,
            'helper_id': self.helper_id,
            'helper_name': self.helper_name,
            'claimed_at': self.claimed_at.isoformat() if self.claimed_at else None,
            'session_id': self.session_id,
            'zoho_customer_url': self.zoho_customer_url,
            'amount': self.amount,
            'currency': self.currency,
            'payment_intent_id': self.payment_intent_id,
            'payment_status': self.payment_status,
            'outcome': self.outcome,
            'cancel_reason': self.cancel_reason,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }
        if viewer_id is not None and viewer_id == self.helper_id:
            data['zoho_technician_url'] = self.zoho_technician_url
            data['customer_phone'] = self.customer_phone
        return data

    def __repr__(self):
        return f'<HelpRequest {self.id}: {self.category} [{self.status}]>'
