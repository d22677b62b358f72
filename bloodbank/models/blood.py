from bloodbank import db
from datetime import datetime, date
import uuid

INVENTORY_STATUSES = ['available', 'reserved', 'expired', 'used']
TEST_NAMES = ['hiv', 'hepatitis_b', 'hepatitis_c', 'syphilis']
TEST_RESULTS = ['negative', 'positive']

URGENCY_LEVELS = ['low', 'medium', 'high', 'critical']
REQUEST_STATUSES = ['pending', 'approved', 'fulfilled', 'rejected', 'cancelled']

# Status -> statuses it may move to
REQUEST_TRANSITIONS = {
    'pending': ['approved', 'rejected', 'cancelled'],
    'approved': ['fulfilled', 'cancelled'],
    'fulfilled': [],
    'rejected': [],
    'cancelled': [],
}


def default_units_collected(context):
    return context.get_current_parameters()['units_available']


class BloodInventory(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    blood_group = db.Column(db.String(5), nullable=False)
    units_available = db.Column(db.Integer, nullable=False, default=0)
    units_reserved = db.Column(db.Integer, nullable=False, default=0)
    # Fixed at collection; allocations draw down units_available only
    units_collected = db.Column(db.Integer, nullable=False, default=default_units_collected)
    expiry_date = db.Column(db.Date, nullable=False)
    collection_date = db.Column(db.Date, nullable=False, default=date.today)
    donor_id = db.Column(db.Integer, db.ForeignKey('donor.id'), nullable=True)
    blood_bank_location = db.Column(db.String(100), nullable=False, default='Main Bank')
    status = db.Column(db.String(20), nullable=False, default='available')  # available, reserved, expired, used

    # Screening results
    hiv = db.Column(db.String(10), nullable=False, default='negative')
    hepatitis_b = db.Column(db.String(10), nullable=False, default='negative')
    hepatitis_c = db.Column(db.String(10), nullable=False, default='negative')
    syphilis = db.Column(db.String(10), nullable=False, default='negative')

    added_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    allocations = db.relationship('RequestFulfillment', back_populates='inventory', lazy=True)

    def __repr__(self):
        return f"BloodInventory('{self.blood_group}', '{self.units_available} units', '{self.status}')"

    def has_positive_screening(self):
        return any(getattr(self, test) == 'positive' for test in TEST_NAMES)

    def is_past_expiry(self, today=None):
        return self.expiry_date < (today or date.today())

    def mark_expired(self):
        self.status = 'expired'

    def mark_used(self):
        self.status = 'used'
        self.units_reserved = 0

    @property
    def units_drawn(self):
        return sum(allocation.units for allocation in self.allocations)

    def draw(self, units):
        """
        Take units out of the batch; an emptied batch is marked used
        """
        self.units_available -= units
        if self.units_available == 0:
            self.mark_used()

    def to_dict(self):
        return {
            '_id': str(self.id),
            'id': str(self.id),
            'bloodGroup': self.blood_group,
            'unitsAvailable': self.units_available,
            'unitsReserved': self.units_reserved,
            'unitsCollected': self.units_collected,
            'unitsDrawn': self.units_drawn,
            'expiryDate': self.expiry_date.isoformat() if self.expiry_date else None,
            'collectionDate': self.collection_date.isoformat() if self.collection_date else None,
            'donorId': str(self.donor_id) if self.donor_id else None,
            'bloodBankLocation': self.blood_bank_location,
            'status': self.status,
            'testResults': {
                'hiv': self.hiv,
                'hepatitisB': self.hepatitis_b,
                'hepatitisC': self.hepatitis_c,
                'syphilis': self.syphilis,
            },
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


def generate_request_id():
    return f"BR-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class BloodRequest(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.String(30), unique=True, nullable=False, default=generate_request_id)
    patient_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    blood_group = db.Column(db.String(5), nullable=False)
    units_needed = db.Column(db.Integer, nullable=False, default=1)
    urgency = db.Column(db.String(10), nullable=False, default='medium')  # low, medium, high, critical
    patient_name = db.Column(db.String(100), nullable=False)
    patient_age = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    required_by = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, approved, fulfilled, rejected, cancelled
    approved_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    approval_date = db.Column(db.DateTime, nullable=True)
    rejection_date = db.Column(db.DateTime, nullable=True)
    fulfillment_date = db.Column(db.DateTime, nullable=True)
    cancellation_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = db.relationship('User', foreign_keys=[patient_id])
    hospital = db.relationship('User', foreign_keys=[hospital_id])
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])
    allocations = db.relationship('RequestFulfillment', back_populates='request', lazy='subquery',
                                  cascade='all, delete-orphan')

    def __repr__(self):
        return f"BloodRequest('{self.request_id}', '{self.blood_group}', '{self.status}')"

    def can_transition_to(self, status):
        return status in REQUEST_TRANSITIONS.get(self.status, [])

    def mark_approved(self, user):
        self.status = 'approved'
        self.approved_by = user
        self.approval_date = datetime.utcnow()

    def mark_rejected(self):
        self.status = 'rejected'
        self.rejection_date = datetime.utcnow()

    def mark_fulfilled(self, allocations):
        """
        allocations: (inventory record, units taken from it) pairs
        """
        self.status = 'fulfilled'
        for unit, units in allocations:
            self.allocations.append(RequestFulfillment(inventory=unit, units=units))
        self.fulfillment_date = datetime.utcnow()

    def mark_cancelled(self):
        self.status = 'cancelled'
        self.cancellation_date = datetime.utcnow()

    def is_visible_to(self, user):
        if user.is_admin():
            return True
        if user.is_hospital():
            return self.hospital_id == user.id or self.created_by == user.id
        return self.patient_id == user.id or self.created_by == user.id

    def to_dict(self):
        return {
            '_id': str(self.id),
            'id': str(self.id),
            'requestId': self.request_id,
            'patientId': self.patient.summary() if self.patient else None,
            'hospitalId': self.hospital.summary() if self.hospital else None,
            'bloodGroup': self.blood_group,
            'unitsNeeded': self.units_needed,
            'urgency': self.urgency,
            'patientName': self.patient_name,
            'patientAge': self.patient_age,
            'reason': self.reason,
            'requiredBy': self.required_by.isoformat() if self.required_by else None,
            'status': self.status,
            'approvedBy': self.approved_by.summary() if self.approved_by else None,
            'fulfilledBy': [dict(allocation.inventory.to_dict(), unitsAllocated=allocation.units)
                            for allocation in self.allocations],
            'notes': self.notes,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


class RequestFulfillment(db.Model):
    __tablename__ = 'request_fulfillment'

    request_id = db.Column(db.Integer, db.ForeignKey('blood_request.id'), primary_key=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey('blood_inventory.id'), primary_key=True)
    units = db.Column(db.Integer, nullable=False)

    request = db.relationship('BloodRequest', back_populates='allocations')
    inventory = db.relationship('BloodInventory', back_populates='allocations', lazy='joined')

    def __repr__(self):
        return f"RequestFulfillment('{self.request_id}', '{self.inventory_id}', '{self.units} units')"
