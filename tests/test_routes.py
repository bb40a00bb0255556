from config import TestingConfig
from bloodbank import create_app
from bloodbank.extensions import db
from bloodbank.models import BloodRequest, BloodStock, Facility
from tests.conftest import LAB_EMAIL, HOSPITAL_EMAIL, init_test_data, login


def _send(hospital_client, facilities, **overrides):
    payload = {'labId': facilities['lab'], 'bloodGroup': 'O-', 'units': 2}
    payload.update(overrides)
    return hospital_client.post('/hospital/requests', json=payload)


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_login_required(client):
    """Protected endpoints answer 401 without a session."""
    for method, route in [
        ('get', '/hospital/requests'),
        ('post', '/hospital/requests'),
        ('get', '/lab/requests'),
        ('put', '/lab/requests/1/accept'),
        ('get', '/blood/stock'),
        ('get', '/auth/me'),
    ]:
        response = getattr(client, method)(route)
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Unauthorized'


def test_roles_are_enforced(hospital_client, lab_client):
    response = lab_client.post('/hospital/requests', json={})
    assert response.status_code == 403
    assert response.get_json()['error'] == 'ForbiddenError'

    response = hospital_client.put('/lab/requests/1/accept')
    assert response.status_code == 403


def test_login_rejects_bad_password(client):
    response = login(client, HOSPITAL_EMAIL, password='nope')
    assert response.status_code == 401

    response = client.post('/auth/login', json={'email': HOSPITAL_EMAIL})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'ValidationError'


def test_me_and_logout(lab_client):
    response = lab_client.get('/auth/me')
    assert response.status_code == 200
    assert response.get_json()['email'] == LAB_EMAIL
    assert response.get_json()['role'] == 'lab'

    assert lab_client.post('/auth/logout').status_code == 200
    assert lab_client.get('/auth/me').status_code == 401


def test_send_blood_request(hospital_client, app, facilities):
    response = _send(hospital_client, facilities)
    assert response.status_code == 200

    body = response.get_json()
    assert body['message'] == 'Blood request sent successfully'
    assert body['request']['status'] == 'Pending'
    assert body['request']['units'] == 2
    assert body['request']['hospital'] == facilities['hospital']
    assert body['request']['bloodLab'] == facilities['lab']

    with app.app_context():
        assert BloodRequest.query.count() == 1


def test_send_blood_request_accepts_snake_case(hospital_client, facilities):
    response = hospital_client.post('/hospital/requests', json={
        'lab_id': facilities['lab'],
        'blood_group': 'A+',
        'units': 1,
    })
    assert response.status_code == 200
    assert response.get_json()['request']['bloodGroup'] == 'A+'


def test_send_blood_request_missing_field(hospital_client, app, facilities):
    response = hospital_client.post('/hospital/requests', json={
        'labId': facilities['lab'],
        'bloodGroup': 'O-',
    })
    assert response.status_code == 400
    body = response.get_json()
    assert body['error'] == 'ValidationError'
    assert body['message'] == 'All fields are required'
    assert body['details'] == ['units']

    with app.app_context():
        assert BloodRequest.query.count() == 0


def test_send_blood_request_invalid_values(hospital_client, app, facilities):
    assert _send(hospital_client, facilities, bloodGroup='X+').status_code == 400
    assert _send(hospital_client, facilities, units=2.5).status_code == 400
    assert _send(hospital_client, facilities, units=-3).status_code == 400
    assert _send(hospital_client, facilities, labId=facilities['other_hospital']).status_code == 400

    with app.app_context():
        assert BloodRequest.query.count() == 0


def test_lab_lists_requests_with_hospital_details(hospital_client, lab_client, facilities):
    _send(hospital_client, facilities, units=1)
    _send(hospital_client, facilities, units=3)

    response = lab_client.get('/lab/requests')
    assert response.status_code == 200
    requests = response.get_json()
    assert [r['units'] for r in requests] == [3, 1]
    assert requests[0]['hospital'] == {
        'id': facilities['hospital'],
        'name': 'City Hospital',
        'email': HOSPITAL_EMAIL,
        'phone': '555-0101',
    }


def test_accept_blood_request(hospital_client, lab_client, facilities):
    request_id = _send(hospital_client, facilities, units=2).get_json()['request']['id']

    response = lab_client.put(f'/lab/requests/{request_id}/accept')
    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Request Accepted'
    assert body['request']['status'] == 'Accepted'

    stock = lab_client.get('/blood/stock').get_json()['stock']
    assert {'bloodGroup': 'O-', 'quantity': 3} in stock

    # Already accepted
    response = lab_client.put(f'/lab/requests/{request_id}/accept')
    assert response.status_code == 409
    assert response.get_json()['error'] == 'RequestStateError'
    stock = lab_client.get('/blood/stock').get_json()['stock']
    assert {'bloodGroup': 'O-', 'quantity': 3} in stock


def test_accept_with_insufficient_stock(hospital_client, lab_client, app, facilities):
    request_id = _send(hospital_client, facilities, units=9).get_json()['request']['id']

    response = lab_client.put(f'/lab/requests/{request_id}/accept')
    assert response.status_code == 400
    assert response.get_json() == {
        'error': 'InsufficientStockError',
        'message': 'Not enough stock available',
    }

    with app.app_context():
        assert db.session.get(BloodRequest, request_id).status == 'Pending'
        assert BloodStock.quantity_for(facilities['lab'], 'O-') == 5


def test_accept_unknown_request(lab_client):
    response = lab_client.put('/lab/requests/777/accept')
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Request not found'


def test_other_lab_cannot_see_or_touch_request(hospital_client, app, facilities):
    request_id = _send(hospital_client, facilities).get_json()['request']['id']

    other_lab = app.test_client()
    login(other_lab, 'east@lab.test')

    assert other_lab.get('/lab/requests').get_json() == []
    assert other_lab.put(f'/lab/requests/{request_id}/accept').status_code == 404
    assert other_lab.put(f'/lab/requests/{request_id}/reject').status_code == 404


def test_reject_blood_request(hospital_client, lab_client, facilities):
    first = _send(hospital_client, facilities).get_json()['request']['id']
    second = _send(hospital_client, facilities).get_json()['request']['id']

    response = lab_client.put(f'/lab/requests/{first}/reject')
    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Request Rejected'
    assert body['request']['status'] == 'Rejected'
    assert body['request']['reason'] == 'Not specified'

    response = lab_client.put(
        f'/lab/requests/{second}/reject',
        json={'reason': 'Group out of stock this week'}
    )
    assert response.get_json()['request']['reason'] == 'Group out of stock this week'

    assert lab_client.put(f'/lab/requests/{second}/accept').status_code == 409
    stock = lab_client.get('/blood/stock').get_json()['stock']
    assert {'bloodGroup': 'O-', 'quantity': 5} in stock


def test_hospital_history(hospital_client, lab_client, facilities):
    first = _send(hospital_client, facilities, units=1).get_json()['request']['id']
    second = _send(hospital_client, facilities, bloodGroup='A+', units=4).get_json()['request']['id']
    lab_client.put(f'/lab/requests/{first}/accept')

    response = hospital_client.get('/hospital/requests')
    assert response.status_code == 200
    history = response.get_json()
    assert [r['id'] for r in history] == [second, first]
    assert history[1]['status'] == 'Accepted'
    assert history[0]['bloodLab']['name'] == 'Central Blood Lab'
    assert history[0]['bloodLab']['email'] == LAB_EMAIL


def test_stock_add_and_remove(lab_client, app, facilities):
    response = lab_client.post('/blood/add', json={'bloodGroup': 'B-', 'units': 6})
    assert response.status_code == 200
    assert response.get_json()['stock']['quantity'] == 6

    response = lab_client.post('/blood/remove', json={'bloodGroup': 'B-', 'quantity': 2})
    assert response.status_code == 200
    assert response.get_json()['stock']['quantity'] == 4

    response = lab_client.post('/blood/remove', json={'bloodGroup': 'B-', 'units': 5})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'InsufficientStockError'

    response = lab_client.post('/blood/add', json={'bloodGroup': 'B-', 'units': 0})
    assert response.status_code == 400

    body = lab_client.get('/blood/stock').get_json()
    assert len(body['stock']) == 8
    assert body['total'] == 5 + 10 + 4

    with app.app_context():
        assert BloodStock.quantity_for(facilities['lab'], 'B-') == 4


def test_disabled_facility_cannot_log_in(client, app):
    with app.app_context():
        facility = Facility.query.filter_by(email=HOSPITAL_EMAIL).first()
        facility.is_active = False
        db.session.commit()

    response = login(client, HOSPITAL_EMAIL)
    assert response.status_code == 401


def test_storage_failure_is_reported_as_server_error(lab_client, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from bloodbank import services

    def broken_listing(lab):
        raise OperationalError('SELECT', {}, Exception('connection refused'))

    monkeypatch.setattr(services, 'list_lab_requests', broken_listing)

    response = lab_client.get('/lab/requests')
    assert response.status_code == 500
    assert response.get_json()['error'] == 'ServerError'


def test_oversized_numbers_are_validation_errors(hospital_client, lab_client, app, facilities):
    response = _send(hospital_client, facilities, units=10 ** 20)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'ValidationError'

    response = _send(hospital_client, facilities, labId=10 ** 20)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'ValidationError'

    response = lab_client.post('/blood/add', json={'bloodGroup': 'B-', 'units': 2 ** 63})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'ValidationError'

    with app.app_context():
        assert BloodRequest.query.count() == 0
        assert BloodStock.get_record(facilities['lab'], 'B-') is None


def test_oversized_request_id_is_not_found(lab_client):
    response = lab_client.put('/lab/requests/99999999999999999999/accept')
    assert response.status_code == 404
    assert response.get_json()['error'] == 'NotFoundError'

    response = lab_client.put('/lab/requests/99999999999999999999/reject')
    assert response.status_code == 404


def test_timestamps_use_configured_timezone(hospital_client, app, facilities):
    app.config['TIMEZONE'] = 'Asia/Kolkata'

    body = _send(hospital_client, facilities).get_json()
    assert body['request']['createdAt'].endswith('+05:30')

    history = hospital_client.get('/hospital/requests').get_json()
    assert history[0]['updatedAt'].endswith('+05:30')


def test_read_only_views_skip_default_rate_limit(tmp_path):
    app = create_app(TestingConfig, {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'limits.db'}",
        'RATELIMIT_ENABLED': True,
        'RATELIMIT_DEFAULT': '2 per minute',
    })
    with app.app_context():
        init_test_data()

    client = app.test_client()
    login(client, LAB_EMAIL)

    for _ in range(5):
        assert client.get('/lab/requests').status_code == 200
        assert client.get('/blood/stock').status_code == 200
        assert client.get('/auth/me').status_code == 200

    statuses = [
        client.post('/blood/add', json={'bloodGroup': 'B-', 'units': 1}).status_code
        for _ in range(3)
    ]
    assert statuses == [200, 200, 429]

    with app.app_context():
        db.engine.dispose()
