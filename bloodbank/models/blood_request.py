# bloodbank/models/blood_request.py

from datetime import datetime
from flask import current_app
from sqlalchemy.orm import validates
from bloodbank.extensions import db
from bloodbank.errors import RequestStateError
from bloodbank.models.blood_stock import BLOOD_GROUPS, MAX_INTEGER
from bloodbank.utils import format_timestamp


class BloodRequest(db.Model):
    """A hospital's request to a lab for units of one blood group."""
    __tablename__ = 'blood_request'

    PENDING = 'Pending'
    ACCEPTED = 'Accepted'
    REJECTED = 'Rejected'
    COMPLETED = 'Completed'
    STATUSES = (PENDING, ACCEPTED, REJECTED, COMPLETED)

    # Allowed moves; anything missing here is a terminal state
    TRANSITIONS = {
        PENDING: (ACCEPTED, REJECTED),
        ACCEPTED: (COMPLETED,),
    }

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(
        db.Integer,
        db.ForeignKey('facility.id'),
        nullable=False,
        index=True
    )
    lab_id = db.Column(
        db.Integer,
        db.ForeignKey('facility.id'),
        nullable=False,
        index=True
    )
    blood_group = db.Column(db.String(3), nullable=False)
    units = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PENDING)
    reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version_id = db.Column(db.Integer, nullable=False)

    hospital = db.relationship('Facility', foreign_keys=[hospital_id])
    lab = db.relationship('Facility', foreign_keys=[lab_id])

    __mapper_args__ = {
        'version_id_col': version_id
    }

    __table_args__ = (
        db.CheckConstraint('units >= 1', name='ck_blood_request_units_positive'),
    )

    @validates('blood_group')
    def validate_blood_group(self, key, value):
        if value not in BLOOD_GROUPS:
            raise ValueError(f"Invalid blood group: {value}")
        return value

    @validates('units')
    def validate_units(self, key, value):
        if isinstance(value, bool):
            raise ValueError("Units must be a whole number")
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValueError("Units must be a whole number")
        if value < 1:
            raise ValueError("Units must be at least 1")
        if value > MAX_INTEGER:
            raise ValueError(f"Units cannot exceed {MAX_INTEGER}")
        return value

    @validates('status')
    def validate_status(self, key, value):
        if value not in self.STATUSES:
            raise ValueError(f"Invalid status: {value}")
        return value

    def can_transition_to(self, status):
        current = self.status or self.PENDING
        return status in self.TRANSITIONS.get(current, ())

    def transition_to(self, status):
        """Move the request to ``status`` or raise RequestStateError."""
        if not self.can_transition_to(status):
            raise RequestStateError(
                f"Request is already {self.status} and cannot be {status.lower()}"
            )
        self.status = status

    def is_terminal(self):
        return self.status not in self.TRANSITIONS

    def to_dict(self, populate=None):
        """Serialize the request.

        Args:
            populate: 'hospital' or 'lab' to embed that counterpart's
                public profile instead of its id

        Returns:
            dict: JSON-ready representation
        """
        tz_name = current_app.config.get('TIMEZONE', 'UTC')
        data = {
            'id': self.id,
            'hospital': self.hospital_id,
            'bloodLab': self.lab_id,
            'bloodGroup': self.blood_group,
            'units': self.units,
            'status': self.status,
            'reason': self.reason,
            'createdAt': format_timestamp(self.created_at, tz_name),
            'updatedAt': format_timestamp(self.updated_at, tz_name),
        }
        if populate == 'hospital':
            data['hospital'] = self.hospital.public_profile()
        elif populate == 'lab':
            data['bloodLab'] = self.lab.public_profile()
        return data

    def __repr__(self):
        return f'<BloodRequest {self.id} {self.blood_group}x{self.units} {self.status}>'
