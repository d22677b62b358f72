from bloodbank import db
from bloodbank.utils.eligibility import calculate_age, check_eligibility
from flask import current_app
from datetime import datetime

GENDERS = ['male', 'female', 'other']


class Donor(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    blood_group = db.Column(db.String(5), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(10), nullable=False)
    weight = db.Column(db.Float, nullable=False)
    street = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)
    medical_history = db.Column(db.Text, nullable=True)
    last_donation_date = db.Column(db.Date, nullable=True)
    total_donations = db.Column(db.Integer, nullable=False, default=0)
    is_eligible = db.Column(db.Boolean, nullable=False, default=False)
    emergency_contact_name = db.Column(db.String(100), nullable=True)
    emergency_contact_phone = db.Column(db.String(20), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    donations = db.relationship('BloodInventory', backref='donor', lazy=True)

    @property
    def age(self):
        return calculate_age(self.date_of_birth)

    def check_eligibility(self):
        return check_eligibility(
            age=self.age,
            weight=self.weight,
            last_donation_date=self.last_donation_date,
            interval_days=current_app.config['DONATION_INTERVAL_DAYS']
        )

    def refresh_eligibility(self):
        self.is_eligible = self.check_eligibility()[0]
        return self.is_eligible

    def record_donation(self, donation_date):
        self.total_donations = (self.total_donations or 0) + 1
        if self.last_donation_date is None or donation_date > self.last_donation_date:
            self.last_donation_date = donation_date
        self.refresh_eligibility()

    def to_dict(self):
        eligible, reasons, next_eligible_date = self.check_eligibility()
        return {
            '_id': str(self.id),
            'id': str(self.id),
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'bloodGroup': self.blood_group,
            'dateOfBirth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'age': self.age,
            'gender': self.gender,
            'weight': self.weight,
            'address': {
                'street': self.street or '',
                'city': self.city or '',
                'state': self.state or '',
                'zipCode': self.zip_code or '',
            },
            'medicalHistory': self.medical_history,
            'lastDonationDate': self.last_donation_date.isoformat() if self.last_donation_date else None,
            'totalDonations': self.total_donations or 0,
            'isEligible': eligible,
            'eligibilityReasons': reasons,
            'nextEligibleDate': next_eligible_date.isoformat() if next_eligible_date else None,
            'emergencyContact': {
                'name': self.emergency_contact_name or '',
                'phone': self.emergency_contact_phone or '',
            },
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"Donor('{self.name}', '{self.blood_group}')"
