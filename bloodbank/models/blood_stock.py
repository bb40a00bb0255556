# bloodbank/models/blood_stock.py

from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import validates
from bloodbank.extensions import db
from bloodbank.errors import InsufficientStockError, ValidationError

BLOOD_GROUPS = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

# Largest value an INTEGER column holds on every supported backend
MAX_INTEGER = 2 ** 31 - 1


class BloodStock(db.Model):
    """Units of one blood group held by one facility.

    All quantity changes go through ``add`` and ``take``, which issue a
    single UPDATE statement each, so concurrent writers never observe or
    produce a negative quantity.
    """
    __tablename__ = 'blood_stock'

    id = db.Column(db.Integer, primary_key=True)
    facility_id = db.Column(
        db.Integer,
        db.ForeignKey('facility.id'),
        nullable=False,
        index=True
    )
    blood_group = db.Column(db.String(3), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version_id = db.Column(db.Integer, nullable=False)

    facility = db.relationship('Facility', backref=db.backref('stock', lazy='dynamic'))

    __mapper_args__ = {
        'version_id_col': version_id
    }

    __table_args__ = (
        db.UniqueConstraint('facility_id', 'blood_group', name='unique_group_per_facility'),
        db.CheckConstraint('quantity >= 0', name='ck_blood_stock_quantity_non_negative'),
    )

    @validates('blood_group')
    def validate_blood_group(self, key, value):
        if value not in BLOOD_GROUPS:
            raise ValueError(f"Invalid blood group: {value}")
        return value

    @validates('quantity')
    def validate_quantity(self, key, value):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValueError("Quantity must be a whole number")
        if value < 0:
            raise ValueError("Quantity cannot be negative")
        return value

    @staticmethod
    def _check_units(blood_group, units):
        if blood_group not in BLOOD_GROUPS:
            raise ValidationError(f"Invalid blood group: {blood_group}")
        if isinstance(units, bool) or not isinstance(units, int) or units < 1:
            raise ValidationError("Units must be a positive whole number")
        if units > MAX_INTEGER:
            raise ValidationError(f"Units cannot exceed {MAX_INTEGER}")

    @classmethod
    def get_record(cls, facility_id, blood_group):
        return cls.query.filter_by(
            facility_id=facility_id,
            blood_group=blood_group
        ).first()

    @classmethod
    def quantity_for(cls, facility_id, blood_group):
        record = cls.get_record(facility_id, blood_group)
        return record.quantity if record else 0

    @classmethod
    def levels_for(cls, facility_id):
        """Quantity of every blood group for a facility, zero when absent."""
        levels = {group: 0 for group in BLOOD_GROUPS}
        for record in cls.query.filter_by(facility_id=facility_id):
            levels[record.blood_group] = record.quantity
        return levels

    @classmethod
    def _increment(cls, facility_id, blood_group, delta):
        return db.session.execute(
            update(cls)
            .where(
                cls.facility_id == facility_id,
                cls.blood_group == blood_group
            )
            .values(
                quantity=cls.quantity + delta,
                version_id=cls.version_id + 1,
                updated_at=datetime.utcnow()
            )
        ).rowcount

    @classmethod
    def add(cls, facility_id, blood_group, units):
        """Add units to a facility's stock, creating the record if needed.

        Does not commit; the caller owns the transaction.
        """
        cls._check_units(blood_group, units)

        if cls._increment(facility_id, blood_group, units) == 0:
            try:
                with db.session.begin_nested():
                    db.session.add(cls(
                        facility_id=facility_id,
                        blood_group=blood_group,
                        quantity=units
                    ))
            except IntegrityError:
                # Lost the race to create the record, it exists now
                cls._increment(facility_id, blood_group, units)

        return cls.get_record(facility_id, blood_group)

    @classmethod
    def take(cls, facility_id, blood_group, units):
        """Decrement stock only if enough units are available.

        The sufficiency check and the decrement are one statement, so two
        callers can never both spend the same units.

        Raises:
            InsufficientStockError: no record, or quantity < units
        """
        cls._check_units(blood_group, units)

        updated = db.session.execute(
            update(cls)
            .where(
                cls.facility_id == facility_id,
                cls.blood_group == blood_group,
                cls.quantity >= units
            )
            .values(
                quantity=cls.quantity - units,
                version_id=cls.version_id + 1,
                updated_at=datetime.utcnow()
            )
        ).rowcount

        if updated != 1:
            raise InsufficientStockError()

        return cls.get_record(facility_id, blood_group)

    def to_dict(self):
        return {
            'facility': self.facility_id,
            'bloodGroup': self.blood_group,
            'quantity': self.quantity,
        }

    def __repr__(self):
        return f'<BloodStock {self.facility_id}:{self.blood_group}={self.quantity}>'
