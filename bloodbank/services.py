# bloodbank/services.py

"""Blood request lifecycle and stock operations.

Every function here runs inside the caller's request or app context and owns
its transaction: it commits on success and rolls back before re-raising.
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.exc import StaleDataError

from bloodbank.extensions import db
from bloodbank.errors import (
    BloodBankError,
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)
from bloodbank.models import (
    BloodRequest,
    BloodStock,
    Facility,
    StockLog,
    MAX_INTEGER,
)


def _get_lab_request(lab, request_id, lock=False):
    """Load a request addressed to ``lab`` or raise NotFoundError."""
    if not 1 <= request_id <= MAX_INTEGER:
        raise NotFoundError()
    blood_request = db.session.get(
        BloodRequest,
        request_id,
        with_for_update=True if lock else None,
        populate_existing=lock
    )
    if blood_request is None or blood_request.lab_id != lab.id:
        raise NotFoundError()
    return blood_request


def submit_request(hospital, lab_id, blood_group, units):
    """Create a Pending blood request from ``hospital`` to a lab.

    Args:
        hospital: requesting Facility (role hospital)
        lab_id: id of the target lab
        blood_group: one of BLOOD_GROUPS
        units: positive number of units

    Returns:
        BloodRequest: the stored request

    Raises:
        ValidationError: missing field, bad value or unknown lab
    """
    if not lab_id or not blood_group or not units:
        raise ValidationError()

    try:
        lab = None
        if 1 <= lab_id <= MAX_INTEGER:
            lab = db.session.get(Facility, lab_id)
        if lab is None or not lab.is_lab() or not lab.is_active:
            raise ValidationError("Selected blood lab does not exist")

        try:
            blood_request = BloodRequest(
                hospital_id=hospital.id,
                lab_id=lab.id,
                blood_group=blood_group,
                units=units,
                status=BloodRequest.PENDING
            )
        except ValueError as ve:
            raise ValidationError(str(ve))

        db.session.add(blood_request)
        db.session.commit()
    except (BloodBankError, SQLAlchemyError):
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Blood request {blood_request.id} sent: hospital {hospital.id} -> "
        f"lab {lab.id}, {units} x {blood_group}"
    )
    return blood_request


def accept_request(lab, request_id):
    """Accept a pending request and reserve its units from the lab's stock.

    The stock decrement, the status change and the stock log entry are
    committed as one transaction. A concurrent change to the same request
    (version conflict) rolls everything back and the attempt is retried up
    to ACCEPT_MAX_RETRIES times.

    Raises:
        NotFoundError: no such request for this lab
        RequestStateError: request is not Pending
        InsufficientStockError: lab stock is missing or too low
        ConcurrencyError: retries exhausted
    """
    max_retries = current_app.config.get('ACCEPT_MAX_RETRIES', 3)

    for attempt in range(1, max_retries + 1):
        try:
            blood_request = _get_lab_request(lab, request_id, lock=True)
            blood_request.transition_to(BloodRequest.ACCEPTED)

            BloodStock.take(lab.id, blood_request.blood_group, blood_request.units)
            StockLog.record(
                actor=lab,
                action_type='reserve',
                facility_id=lab.id,
                blood_group=blood_request.blood_group,
                quantity=-blood_request.units,
                blood_request=blood_request,
                notes=f"Reserved for hospital {blood_request.hospital_id}"
            )

            db.session.commit()

        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(
                f"Version conflict accepting request {request_id} "
                f"(attempt {attempt}/{max_retries})"
            )
            continue
        except BloodBankError:
            db.session.rollback()
            raise
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(
                f"DB error while accepting request {request_id}"
            )
            raise

        current_app.logger.info(
            f"Blood request {blood_request.id} accepted by lab {lab.id}: "
            f"{blood_request.units} x {blood_request.blood_group} reserved"
        )
        return blood_request

    raise ConcurrencyError()


def reject_request(lab, request_id, reason=None):
    """Reject a pending request. Stock is never touched.

    Raises:
        NotFoundError: no such request for this lab
        RequestStateError: request is not Pending
        ConcurrencyError: request changed while being rejected
    """
    reason = (reason or '').strip() or current_app.config.get(
        'DEFAULT_REJECTION_REASON', 'Not specified'
    )

    try:
        blood_request = _get_lab_request(lab, request_id, lock=True)
        blood_request.transition_to(BloodRequest.REJECTED)
        blood_request.reason = reason
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConcurrencyError()
    except (BloodBankError, SQLAlchemyError):
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Blood request {blood_request.id} rejected by lab {lab.id}: {reason}"
    )
    return blood_request


def list_lab_requests(lab):
    """Requests addressed to ``lab``, newest first, hospitals loaded."""
    return BloodRequest.query\
        .options(joinedload(BloodRequest.hospital))\
        .filter(BloodRequest.lab_id == lab.id)\
        .order_by(BloodRequest.created_at.desc(), BloodRequest.id.desc())\
        .all()


def list_hospital_requests(hospital):
    """Requests sent by ``hospital``, newest first, labs loaded."""
    return BloodRequest.query\
        .options(joinedload(BloodRequest.lab))\
        .filter(BloodRequest.hospital_id == hospital.id)\
        .order_by(BloodRequest.created_at.desc(), BloodRequest.id.desc())\
        .all()


def add_stock(facility, blood_group, units):
    """Add units to the facility's own stock and log it."""
    try:
        record = BloodStock.add(facility.id, blood_group, units)
        StockLog.record(
            actor=facility,
            action_type='add',
            facility_id=facility.id,
            blood_group=blood_group,
            quantity=units
        )
        db.session.commit()
    except (BloodBankError, SQLAlchemyError):
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Facility {facility.id} added {units} x {blood_group}, now {record.quantity}"
    )
    return record


def remove_stock(facility, blood_group, units):
    """Remove units from the facility's own stock; never below zero."""
    try:
        record = BloodStock.take(facility.id, blood_group, units)
        StockLog.record(
            actor=facility,
            action_type='remove',
            facility_id=facility.id,
            blood_group=blood_group,
            quantity=-units
        )
        db.session.commit()
    except (BloodBankError, SQLAlchemyError):
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Facility {facility.id} removed {units} x {blood_group}, now {record.quantity}"
    )
    return record
