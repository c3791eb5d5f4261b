"""Live AR session between a helper and a customer."""

from datetime import datetime
from homepro import db
from homepro.constants import MAX_SESSION_MINUTES


class SessionStatus:
    CREATED = 'created'
    ACTIVE = 'active'
    ENDED = 'ended'


class HelpSession(db.Model):

    __tablename__ = 'sessions'

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('help_requests.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    helper_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    zoho_session_id = db.Column(db.String(255), nullable=True)
    technician_url = db.Column(db.String(1000), nullable=True)
    customer_join_url = db.Column(db.String(1000), nullable=True)

    status = db.Column(db.String(20), default=SessionStatus.CREATED, nullable=False)
    safety_checklist_completed = db.Column(db.Boolean, default=False, nullable=False)

    sms_sent_at = db.Column(db.DateTime, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # seconds

    outcome = db.Column(db.String(20), nullable=True)  # 'resolved', 'unresolved', 'escalated'
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def is_participant(self, user_id):
        return user_id is not None and user_id in (self.customer_id, self.helper_id)

    @property
    def overtime(self):
        """True once a finished session ran past the booked length."""
        return self.duration is not None and self.duration > MAX_SESSION_MINUTES * 60

    def end(self, outcome=None, notes=None):
        """Mark the session ended and record how long it ran."""
        now = datetime.utcnow()
        self.status = SessionStatus.ENDED
        self.ended_at = now
        if self.started_at:
            self.duration = int((now - self.started_at).total_seconds())
        if outcome:
            self.outcome = outcome
        if notes is not None:
            self.notes = notes

    def to_dict(self, viewer_id=None):
        data = {
            'id': self.id,
            'request_id': self.request_id,
            'customer_id': self.customer_id,
            'helper_id': self.helper_id,
            'zoho_session_id': self.zoho_session_id,
            'customer_join_url': self.customer_join_url,
            'status': self.status,
            'safety_checklist_completed': self.safety_checklist_completed,
            'sms_sent_at': self.sms_sent_at.isoformat() if self.sms_sent_at else None,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
            'duration': self.duration,
            'max_minutes': MAX_SESSION_MINUTES,
            'overtime': self.overtime,
            'outcome': self.outcome,
            'notes': self.notes,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }
        if viewer_id is not None and viewer_id == self.helper_id:
            data['technician_url'] = self.technician_url
        return data

    def __repr__(self):
        return f'<HelpSession {self.id} for request {self.request_id} [{self.status}]>'
