import os
import tempfile
import pytest
from config import TestingConfig
from bloodbank import create_app
from bloodbank.extensions import db
from bloodbank.models import Facility, BloodStock

PASSWORD = 'secret'
HOSPITAL_EMAIL = 'city@hospital.test'
OTHER_HOSPITAL_EMAIL = 'north@hospital.test'
LAB_EMAIL = 'central@lab.test'
OTHER_LAB_EMAIL = 'east@lab.test'


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    # A file database, so threads in concurrency tests share it
    db_fd, db_path = tempfile.mkstemp()

    app = create_app(TestingConfig, {
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
    })

    with app.app_context():
        db.create_all()
        init_test_data()

    yield app

    with app.app_context():
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def facilities(app):
    """Facility ids keyed by a short name."""
    with app.app_context():
        return {
            'hospital': Facility.query.filter_by(email=HOSPITAL_EMAIL).one().id,
            'other_hospital': Facility.query.filter_by(email=OTHER_HOSPITAL_EMAIL).one().id,
            'lab': Facility.query.filter_by(email=LAB_EMAIL).one().id,
            'other_lab': Facility.query.filter_by(email=OTHER_LAB_EMAIL).one().id,
        }


def login(client, email, password=PASSWORD):
    return client.post('/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def hospital_client(app):
    """A test client logged in as a hospital."""
    client = app.test_client()
    login(client, HOSPITAL_EMAIL)
    return client


@pytest.fixture
def lab_client(app):
    """A test client logged in as a blood lab."""
    client = app.test_client()
    login(client, LAB_EMAIL)
    return client


def init_test_data():
    """Initialize test data."""
    for name, email, role, phone in [
        ('City Hospital', HOSPITAL_EMAIL, Facility.HOSPITAL, '555-0101'),
        ('North Hospital', OTHER_HOSPITAL_EMAIL, Facility.HOSPITAL, '555-0102'),
        ('Central Blood Lab', LAB_EMAIL, Facility.LAB, '555-0201'),
        ('East Blood Lab', OTHER_LAB_EMAIL, Facility.LAB, '555-0202'),
    ]:
        facility = Facility(name=name, email=email, role=role, phone=phone)
        facility.set_password(PASSWORD)
        db.session.add(facility)
    db.session.flush()

    central = Facility.query.filter_by(email=LAB_EMAIL).one()
    db.session.add(BloodStock(facility_id=central.id, blood_group='O-', quantity=5))
    db.session.add(BloodStock(facility_id=central.id, blood_group='A+', quantity=10))

    db.session.commit()
