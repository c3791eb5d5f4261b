"""Payment model mirroring a Stripe PaymentIntent."""

from datetime import datetime
from homepro import db


class PaymentStatus:
    NOT_STARTED = 'not_started'  # request only, no intent yet
    PENDING = 'pending'          # intent created, card not confirmed
    AUTHORIZED = 'authorized'    # funds held, awaiting capture
    CAPTURED = 'captured'
    CANCELLED = 'cancelled'
    FAILED = 'failed'

    OPEN = (PENDING, AUTHORIZED)


class Payment(db.Model):
    """One manual-capture PaymentIntent for a help request."""

    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('help_requests.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    helper_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)

    payment_intent_id = db.Column(db.String(255), unique=True, nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)  # cents
    currency = db.Column(db.String(3), default='usd', nullable=False)

    status = db.Column(db.String(20), default=PaymentStatus.PENDING, nullable=False, index=True)
    failure_reason = db.Column(db.Text, nullable=True)

    authorized_at = db.Column(db.DateTime, nullable=True)
    captured_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'request_id': self.request_id,
            'customer_id': self.customer_id,
            'helper_id': self.helper_id,
            'payment_intent_id': self.payment_intent_id,
            'amount': self.amount,
            'currency': self.currency,
            'status': self.status,
            'failure_reason': self.failure_reason,
            'authorized_at': self.authorized_at.isoformat() if self.authorized_at else None,
            'captured_at': self.captured_at.isoformat() if self.captured_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<Payment {self.id}: {self.amount/100} {self.currency} - {self.status}>'
