# File: bloodbank/models/stock_log.py
from datetime import datetime
from bloodbank.extensions import db


class StockLog(db.Model):
    """Audit trail of stock movements"""
    __tablename__ = 'stock_log'

    id = db.Column(db.Integer, primary_key=True)
    facility_id = db.Column(db.Integer, db.ForeignKey('facility.id'), nullable=False, index=True)
    actor_id = db.Column(db.Integer, db.ForeignKey('facility.id'), nullable=False)
    action_type = db.Column(db.String(20), nullable=False)  # add, remove, reserve
    blood_group = db.Column(db.String(3), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)  # signed change (+/-)
    request_id = db.Column(db.Integer, db.ForeignKey('blood_request.id'))
    notes = db.Column(db.Text)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    facility = db.relationship('Facility', foreign_keys=[facility_id])
    actor = db.relationship('Facility', foreign_keys=[actor_id])
    blood_request = db.relationship('BloodRequest')

    @classmethod
    def record(cls, actor, action_type, facility_id, blood_group, quantity,
               blood_request=None, notes=None):
        """Create a stock log entry in the current transaction.

        Args:
            actor: Facility performing the action
            action_type: add, remove or reserve
            facility_id: Facility whose stock changed
            blood_group: Blood group affected
            quantity: Quantity change (+/-)
            blood_request: Request that caused a reservation, if any
            notes: Optional notes about the action

        Returns:
            StockLog: The created log entry
        """
        log = cls(
            actor_id=actor.id,
            action_type=action_type,
            facility_id=facility_id,
            blood_group=blood_group,
            quantity=quantity,
            request_id=blood_request.id if blood_request else None,
            notes=notes
        )
        db.session.add(log)
        return log

    def __repr__(self):
        return f'<StockLog {self.action_type} {self.blood_group} {self.quantity:+d}>'
