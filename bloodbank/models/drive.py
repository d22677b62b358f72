from bloodbank import db
from datetime import datetime, date

DRIVE_STATUSES = ['upcoming', 'ongoing', 'completed', 'cancelled']
OPEN_DRIVE_STATUSES = ['upcoming', 'ongoing']


def percentage(part, whole, cap=None):
    if not whole:
        return 0
    value = round(part / whole * 100)
    return min(value, cap) if cap is not None else value


class DonationDrive(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    organizer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)

    # Location
    location_name = db.Column(db.String(150), nullable=False)
    location_address = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    target_donors = db.Column(db.Integer, nullable=False, default=50)
    registered_donors = db.Column(db.Integer, nullable=False, default=0)
    completed_donations = db.Column(db.Integer, nullable=False, default=0)
    requirements = db.Column(db.JSON, nullable=True)

    contact_name = db.Column(db.String(100), nullable=True)
    contact_phone = db.Column(db.String(20), nullable=True)
    contact_email = db.Column(db.String(120), nullable=True)

    status = db.Column(db.String(20), nullable=False, default='upcoming')  # upcoming, ongoing, completed, cancelled
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organizer = db.relationship('User', foreign_keys=[organizer_id])
    registrations = db.relationship('DriveRegistration', backref='drive', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f"DonationDrive('{self.title}', '{self.start_date}', '{self.status}')"

    @property
    def registration_progress(self):
        return percentage(self.registered_donors, self.target_donors, cap=100)

    @property
    def success_rate(self):
        return percentage(self.completed_donations, self.registered_donors)

    def is_open_for_registration(self, today=None):
        return self.status_for(today) in OPEN_DRIVE_STATUSES

    def is_registered(self, user):
        return DriveRegistration.query.filter_by(drive_id=self.id, user_id=user.id).first() is not None

    def register(self, user):
        registration = DriveRegistration(drive=self, user_id=user.id)
        db.session.add(registration)
        self.registered_donors = (self.registered_donors or 0) + 1
        return registration

    def status_for(self, today=None):
        """
        Status implied by the drive's dates; cancelled and completed drives stay put
        """
        today = today or date.today()
        if self.status in ('cancelled', 'completed'):
            return self.status
        if today > self.end_date:
            return 'completed'
        if today >= self.start_date:
            return 'ongoing'
        return 'upcoming'

    def to_dict(self, user=None):
        data = {
            '_id': str(self.id),
            'id': str(self.id),
            'title': self.title,
            'description': self.description,
            'organizer': self.organizer.summary() if self.organizer else None,
            'location': {
                'name': self.location_name,
                'address': self.location_address,
                'city': self.city,
                'state': self.state or '',
                'zipCode': self.zip_code or '',
            },
            'startDate': self.start_date.isoformat(),
            'endDate': self.end_date.isoformat(),
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
            'targetDonors': self.target_donors,
            'registeredDonors': self.registered_donors,
            'completedDonations': self.completed_donations,
            'registrationProgress': self.registration_progress,
            'successRate': self.success_rate,
            'requirements': self.requirements or [],
            'contactInfo': {
                'name': self.contact_name or '',
                'phone': self.contact_phone or '',
                'email': self.contact_email or '',
            },
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if user is not None:
            data['isRegistered'] = self.is_registered(user)
        return data


class DriveRegistration(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    drive_id = db.Column(db.Integer, db.ForeignKey('donation_drive.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('drive_id', 'user_id', name='unique_drive_registration'),)

    def __repr__(self):
        return f"DriveRegistration('{self.drive_id}', '{self.user_id}')"
