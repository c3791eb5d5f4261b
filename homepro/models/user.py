"""User model for customers and helpers."""

from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from homepro import db


class UserRole:
    CUSTOMER = 'customer'
    HELPER = 'helper'

    ALL = (CUSTOMER, HELPER)


class User(db.Model):
    """A customer asking for help or a helper professional."""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)  # null for Firebase-only accounts
    firebase_uid = db.Column(db.String(128), unique=True, nullable=True, index=True)
    display_name = db.Column(db.String(100), nullable=False, default='')
    phone = db.Column(db.String(20), nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)
    role = db.Column(db.String(20), default=UserRole.CUSTOMER, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Helper-specific
    is_available = db.Column(db.Boolean, default=False, nullable=False, index=True)
    specialties = db.Column(db.JSON, nullable=True)
    completed_sessions = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_helper(self):
        return self.role == UserRole.HELPER

    def set_password(self, password):
        """Hash and set the user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if the provided password matches the hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        data = {
            'id': self.id,
            'email': self.email,
            'display_name': self.display_name,
            'phone': self.phone,
            'photo_url': self.photo_url,
            'role': self.role,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }
        if self.is_helper:
            data.update({
                'is_available': self.is_available,
                'specialties': self.specialties or [],
                'completed_sessions': self.completed_sessions,
            })
        return data

    def __repr__(self):
        return f'<User {self.id}: {self.email} ({self.role})>'
