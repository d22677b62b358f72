from bloodbank import db, login_manager
from flask import current_app, jsonify
from flask_login import UserMixin
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from datetime import datetime

ROLES = ['patient', 'hospital', 'admin']
HOSPITAL_TYPES = ['government', 'private', 'charitable']

AUTH_TOKEN_SALT = 'auth-token'


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'message': 'Authentication required'}), 401


@login_manager.request_loader
def load_user_from_request(request):
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return User.verify_auth_token(header[len('Bearer '):].strip())


class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(60), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='patient')  # patient, hospital, admin
    phone = db.Column(db.String(20), nullable=True)

    # Address
    street = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)

    # Patient details
    blood_group = db.Column(db.String(5), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)
    medical_history = db.Column(db.Text, nullable=True)
    emergency_contact_name = db.Column(db.String(100), nullable=True)
    emergency_contact_phone = db.Column(db.String(20), nullable=True)
    emergency_contact_relation = db.Column(db.String(50), nullable=True)

    # Hospital details
    hospital_license = db.Column(db.String(50), unique=True, nullable=True)
    hospital_type = db.Column(db.String(20), nullable=True)  # government, private, charitable
    capacity = db.Column(db.Integer, nullable=True)
    specializations = db.Column(db.JSON, nullable=True)
    is_verified = db.Column(db.Boolean, default=False)

    # Notification preferences
    email_notifications = db.Column(db.Boolean, default=True)
    sms_notifications = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    notifications = db.relationship('Notification', backref='user', lazy=True, cascade='all, delete-orphan')
    drive_registrations = db.relationship('DriveRegistration', backref='user', lazy=True, cascade='all, delete-orphan')

    def is_patient(self):
        return self.role == 'patient'

    def is_hospital(self):
        return self.role == 'hospital'

    def is_admin(self):
        return self.role == 'admin'

    def set_password(self, password):
        from bloodbank import bcrypt
        self.password = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        from bloodbank import bcrypt
        return bcrypt.check_password_hash(self.password, password)

    def generate_auth_token(self):
        serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'])
        return serializer.dumps({'id': self.id}, salt=AUTH_TOKEN_SALT)

    @staticmethod
    def verify_auth_token(token):
        serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'])
        try:
            data = serializer.loads(
                token,
                salt=AUTH_TOKEN_SALT,
                max_age=current_app.config['AUTH_TOKEN_MAX_AGE']
            )
        except (BadSignature, SignatureExpired):
            return None
        return db.session.get(User, data.get('id'))

    def to_dict(self):
        data = {
            '_id': str(self.id),
            'id': str(self.id),
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'phone': self.phone,
            'address': {
                'street': self.street or '',
                'city': self.city or '',
                'state': self.state or '',
                'zipCode': self.zip_code or '',
            },
            'isVerified': bool(self.is_verified),
            'emailNotifications': bool(self.email_notifications),
            'smsNotifications': bool(self.sms_notifications),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.is_patient():
            data.update({
                'bloodGroup': self.blood_group,
                'dateOfBirth': self.date_of_birth.isoformat() if self.date_of_birth else None,
                'medicalHistory': self.medical_history,
                'emergencyContact': {
                    'name': self.emergency_contact_name or '',
                    'phone': self.emergency_contact_phone or '',
                    'relation': self.emergency_contact_relation or '',
                },
            })
        if self.is_hospital():
            data.update({
                'hospitalLicense': self.hospital_license,
                'hospitalType': self.hospital_type,
                'capacity': self.capacity,
                'specializations': self.specializations or [],
            })
        return data

    def summary(self):
        return {'_id': str(self.id), 'id': str(self.id), 'name': self.name,
                'email': self.email, 'role': self.role, 'phone': self.phone}

    def __repr__(self):
        return f"User('{self.email}', '{self.role}')"
