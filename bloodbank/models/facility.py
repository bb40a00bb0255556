# bloodbank/models/facility.py

from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from sqlalchemy.orm import validates
from bloodbank.extensions import db


class Facility(UserMixin, db.Model):
    """An authenticated actor: either a hospital or a blood lab.

    Inherits from:
        UserMixin: Provides default implementations for Flask-Login interface
        db.Model: SQLAlchemy model base class
    """
    __tablename__ = 'facility'

    HOSPITAL = 'hospital'
    LAB = 'lab'
    ROLES = (HOSPITAL, LAB)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow
    )
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @validates('role')
    def validate_role(self, key, value):
        if value not in self.ROLES:
            raise ValueError("Role must be 'hospital' or 'lab'")
        return value

    @validates('email')
    def validate_email(self, key, value):
        if not value or not value.strip():
            raise ValueError("Email cannot be empty")
        return value.strip().lower()

    def set_password(self, password):
        """Set facility's password hash from plain text password.

        Args:
            password: Plain text password to hash
        """
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if plain text password matches hash.

        Args:
            password: Plain text password to verify

        Returns:
            bool: True if password matches, False otherwise
        """
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def is_hospital(self):
        return self.role == self.HOSPITAL

    def is_lab(self):
        return self.role == self.LAB

    def public_profile(self):
        """Identity fields a counterpart facility is allowed to see."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
        }

    def to_dict(self):
        data = self.public_profile()
        data.update({
            'role': self.role,
            'address': self.address,
        })
        return data

    def __repr__(self):
        return f'<Facility {self.role}:{self.email}>'
