import itertools
import pytest
from datetime import date, timedelta
from bloodbank import create_app, db
from bloodbank.models.user import User
from bloodbank.models.blood import BloodInventory

PASSWORD = 'secret123'

_sequence = itertools.count(1)


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'MAIL_DEFAULT_SENDER': 'noreply@bloodbank.org',
        'SCHEDULER_ENABLED': False,
        'TWILIO_ACCOUNT_SID': None,
        'TWILIO_AUTH_TOKEN': None,
        'TWILIO_PHONE_NUMBER': None,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """
    Create a user directly in the database and return its id
    """
    def _make_user(role='patient', verified=True, **fields):
        n = next(_sequence)
        fields.setdefault('name', f'Test {role.title()} {n}')
        fields.setdefault('email', f'{role}{n}@mail.com')
        fields.setdefault('phone', '9876543210')
        if role == 'hospital':
            fields.setdefault('hospital_license', f'LIC-{n:05d}')
        with app.app_context():
            user = User(role=role, is_verified=verified, **fields)
            user.set_password(PASSWORD)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user_id):
        with app.app_context():
            token = db.session.get(User, user_id).generate_auth_token()
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers


@pytest.fixture
def admin_id(make_user):
    return make_user('admin')


@pytest.fixture
def patient_id(make_user):
    return make_user('patient', blood_group='B+')


@pytest.fixture
def hospital_id(make_user):
    return make_user('hospital')


@pytest.fixture
def admin_headers(auth_headers, admin_id):
    return auth_headers(admin_id)


@pytest.fixture
def patient_headers(auth_headers, patient_id):
    return auth_headers(patient_id)


@pytest.fixture
def hospital_headers(auth_headers, hospital_id):
    return auth_headers(hospital_id)


@pytest.fixture
def add_stock(app):
    """
    Insert an inventory batch and return its id
    """
    def _add_stock(blood_group, units, expires_in=30, status='available', collected_days_ago=1, **fields):
        with app.app_context():
            unit = BloodInventory(
                blood_group=blood_group,
                units_available=units,
                collection_date=date.today() - timedelta(days=collected_days_ago),
                expiry_date=date.today() + timedelta(days=expires_in),
                status=status,
                **fields
            )
            db.session.add(unit)
            db.session.commit()
            return unit.id
    return _add_stock
