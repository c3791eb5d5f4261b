"""Key/value store for short-lived vendor credentials."""

import time
from datetime import datetime
from homepro import db


class SystemToken(db.Model):

    __tablename__ = 'system_tokens'

    key = db.Column(db.String(64), primary_key=True)
    access_token = db.Column(db.Text, nullable=False)
    expires_at = db.Column(db.Float, nullable=False)  # unix seconds
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def is_valid(self, now=None):
        return self.expires_at > (now if now is not None else time.time())

    def __repr__(self):
        return f'<SystemToken {self.key} expires {self.expires_at}>'
