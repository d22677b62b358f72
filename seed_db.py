from bloodbank import create_app, db
from bloodbank.models.user import User
from bloodbank.models.donor import Donor
from bloodbank.models.blood import BloodInventory, BloodRequest
from bloodbank.models.drive import DonationDrive
from bloodbank.utils.compatibility import BLOOD_GROUPS
from datetime import date, time, timedelta

SAMPLE_PASSWORD = 'test123'


def setup_test_data():
    app = create_app()
    with app.app_context():
        # Check if any users exist
        users = User.query.all()
        print(f"Found {len(users)} users in the database")

        if users:
            print("Existing users:")
            for user in users:
                print(f"- {user.email} ({user.role})")
            return

        print("Creating sample data...")
        admin = User(name='Blood Bank Admin', email='admin@bloodbank.org', role='admin',
                     phone='9876500000', is_verified=True)
        hospital = User(name='City General Hospital', email='hospital@bloodbank.org', role='hospital',
                        phone='9876500001', hospital_license='HOSP123', hospital_type='government',
                        city='Pune', capacity=250, is_verified=True)
        patient = User(name='Asha Patil', email='patient@bloodbank.org', role='patient',
                       phone='9876500002', blood_group='B+', city='Pune')
        for user in (admin, hospital, patient):
            user.set_password(SAMPLE_PASSWORD)
            db.session.add(user)
        db.session.flush()  # Get the user IDs

        today = date.today()
        for index, bg in enumerate(BLOOD_GROUPS):
            donor = Donor(name=f'Sample Donor {bg}', email=f'donor{index + 1}@bloodbank.org',
                          phone=f'98765{index + 10:05d}', blood_group=bg,
                          date_of_birth=date(1990, index + 1, 15), gender='male' if index % 2 else 'female',
                          weight=60 + index, city='Pune', created_by=admin.id)
            donor.refresh_eligibility()
            db.session.add(donor)
            db.session.flush()

            inventory = BloodInventory(blood_group=bg, units_available=5 + index * 2,
                                       collection_date=today - timedelta(days=index),
                                       expiry_date=today + timedelta(days=35 - index),
                                       donor_id=donor.id, added_by=hospital.id)
            db.session.add(inventory)
            donor.record_donation(inventory.collection_date)

        db.session.add(BloodRequest(patient_id=patient.id, hospital_id=hospital.id, created_by=patient.id,
                                    blood_group='B+', units_needed=2, urgency='high',
                                    patient_name=patient.name, patient_age=34,
                                    reason='Scheduled surgery', required_by=today + timedelta(days=3)))

        db.session.add(DonationDrive(title='Community Blood Drive', organizer_id=hospital.id,
                                     location_name='Town Hall', location_address='1 Main Road', city='Pune',
                                     start_date=today + timedelta(days=7), end_date=today + timedelta(days=7),
                                     start_time=time(9, 0), end_time=time(17, 0), target_donors=100,
                                     requirements=['Age 18-65', 'Weight above 50 kg'],
                                     contact_name='Drive Desk', contact_phone='9876500001'))

        db.session.commit()
        print("Sample data created successfully!")
        for user in (admin, hospital, patient):
            print(f"{user.role}: {user.email} / {SAMPLE_PASSWORD}")


if __name__ == '__main__':
    setup_test_data()
