from datetime import date, time, timedelta
from bloodbank import db
from bloodbank.models.drive import DonationDrive
from bloodbank.models.notification import Notification


def days_from_now(days):
    return (date.today() + timedelta(days=days)).isoformat()


def drive_payload(**overrides):
    payload = {
        'title': 'City Blood Drive',
        'description': 'Quarterly community drive',
        'location': {'name': 'Town Hall', 'address': '1 Main Road', 'city': 'Pune'},
        'startDate': days_from_now(7),
        'endDate': days_from_now(7),
        'startTime': '09:00',
        'endTime': '17:00',
        'targetDonors': 50,
        'requirements': ['Bring a photo ID', 'Eat before donating'],
        'contactInfo': {'name': 'Drive Desk', 'phone': '9876500001', 'email': 'drives@cityhospital.org'},
    }
    payload.update(overrides)
    return payload


def create_drive(client, headers, **overrides):
    response = client.post('/api/drives', headers=headers, json=drive_payload(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()['drive']


def test_create_drive_notifies_patients(app, client, hospital_id, hospital_headers, patient_id):
    response = client.post('/api/drives', headers=hospital_headers, json=drive_payload())
    assert response.status_code == 201
    drive = response.get_json()['drive']
    assert drive['status'] == 'upcoming'
    assert drive['organizer']['id'] == str(hospital_id)
    assert drive['id'] == drive['_id']
    assert drive['location']['city'] == 'Pune'
    assert drive['startTime'] == '09:00'
    assert drive['requirements'] == ['Bring a photo ID', 'Eat before donating']
    assert drive['registrationProgress'] == 0
    assert drive['isRegistered'] is False

    with app.app_context():
        notifications = Notification.query.filter_by(user_id=patient_id).all()
        assert len(notifications) == 1
        assert notifications[0].notification_type == 'donation_drive'
        assert notifications[0].related_entity_id == int(drive['_id'])


def test_drive_starting_today_is_ongoing(client, admin_headers):
    drive = create_drive(client, admin_headers, startDate=days_from_now(0), endDate=days_from_now(1))
    assert drive['status'] == 'ongoing'


def test_create_drive_permissions(client, patient_headers, make_user, auth_headers):
    assert client.post('/api/drives', headers=patient_headers, json=drive_payload()).status_code == 403

    unverified = auth_headers(make_user('hospital', verified=False))
    assert client.post('/api/drives', headers=unverified, json=drive_payload()).status_code == 403


def test_create_drive_validation(client, hospital_headers):
    response = client.post('/api/drives', headers=hospital_headers, json=drive_payload(
        endDate=days_from_now(5), targetDonors=0, location={'name': 'Town Hall'}
    ))
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert 'end_date' in errors
    assert 'target_donors' in errors
    assert 'location' in errors


def test_same_day_drive_needs_end_after_start(client, hospital_headers):
    response = client.post('/api/drives', headers=hospital_headers,
                           json=drive_payload(startTime='15:00', endTime='10:00'))
    assert response.status_code == 400
    assert 'end_time' in response.get_json()['errors']


def test_drive_cannot_start_in_the_past(client, hospital_headers):
    response = client.post('/api/drives', headers=hospital_headers,
                           json=drive_payload(startDate=days_from_now(-2), endDate=days_from_now(1)))
    assert response.status_code == 400


def test_list_drives(client, hospital_headers, patient_headers, admin_headers):
    create_drive(client, hospital_headers)
    create_drive(client, hospital_headers, title='Mumbai Drive',
                 location={'name': 'Civic Centre', 'address': '5 Marine Drive', 'city': 'Mumbai'})
    cancelled = create_drive(client, hospital_headers, title='Cancelled Drive')
    client.put(f"/api/drives/{cancelled['_id']}", headers=admin_headers, json={'status': 'cancelled'})

    data = client.get('/api/drives', headers=patient_headers).get_json()
    assert data['total'] == 3

    data = client.get('/api/drives?upcoming=true', headers=patient_headers).get_json()
    assert {d['title'] for d in data['data']} == {'City Blood Drive', 'Mumbai Drive'}

    data = client.get('/api/drives?city=mumbai', headers=patient_headers).get_json()
    assert [d['title'] for d in data['data']] == ['Mumbai Drive']

    data = client.get('/api/drives?status=cancelled', headers=patient_headers).get_json()
    assert [d['title'] for d in data['data']] == ['Cancelled Drive']


def test_register_for_drive(client, hospital_headers, patient_headers):
    drive = create_drive(client, hospital_headers, targetDonors=4)

    response = client.post(f"/api/drives/{drive['_id']}/register", headers=patient_headers)
    assert response.status_code == 200
    registered = response.get_json()['drive']
    assert registered['registeredDonors'] == 1
    assert registered['registrationProgress'] == 25
    assert registered['isRegistered'] is True

    response = client.post(f"/api/drives/{drive['_id']}/register", headers=patient_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'You are already registered for this drive'

    fetched = client.get(f"/api/drives/{drive['_id']}", headers=patient_headers).get_json()
    assert fetched['isRegistered'] is True
    assert fetched['registeredDonors'] == 1


def test_registration_progress_is_capped(client, hospital_headers, make_user, auth_headers):
    drive = create_drive(client, hospital_headers, targetDonors=1)
    for _ in range(2):
        client.post(f"/api/drives/{drive['_id']}/register", headers=auth_headers(make_user('patient')))

    fetched = client.get(f"/api/drives/{drive['_id']}", headers=hospital_headers).get_json()
    assert fetched['registeredDonors'] == 2
    assert fetched['registrationProgress'] == 100


def test_cannot_register_for_closed_drive(app, client, hospital_headers, patient_headers):
    drive = create_drive(client, hospital_headers)
    with app.app_context():
        db.session.get(DonationDrive, int(drive['_id'])).status = 'completed'
        db.session.commit()

    response = client.post(f"/api/drives/{drive['_id']}/register", headers=patient_headers)
    assert response.status_code == 400


def test_drive_past_its_end_date_closes_on_read(app, client, hospital_id, patient_headers):
    with app.app_context():
        drive = DonationDrive(title='Old Drive', organizer_id=hospital_id, location_name='Town Hall',
                              location_address='1 Main Road', city='Pune',
                              start_date=date.today() - timedelta(days=10),
                              end_date=date.today() - timedelta(days=9),
                              start_time=time(9, 0), end_time=time(17, 0), status='upcoming')
        db.session.add(drive)
        db.session.commit()
        drive_id = drive.id

    response = client.post(f'/api/drives/{drive_id}/register', headers=patient_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Registration is closed for completed drives'

    data = client.get(f'/api/drives/{drive_id}', headers=patient_headers).get_json()
    assert data['status'] == 'completed'
    assert data['registeredDonors'] == 0

    data = client.get('/api/drives?status=upcoming', headers=patient_headers).get_json()
    assert data['total'] == 0


def test_only_organizer_or_admin_updates(client, hospital_headers, make_user, auth_headers, admin_headers):
    drive = create_drive(client, hospital_headers)
    other_hospital = auth_headers(make_user('hospital'))

    response = client.put(f"/api/drives/{drive['_id']}", headers=other_hospital, json={'title': 'Taken over'})
    assert response.status_code == 403

    response = client.put(f"/api/drives/{drive['_id']}", headers=hospital_headers, json={'title': 'Renamed Drive'})
    assert response.status_code == 200
    updated = response.get_json()['drive']
    assert updated['title'] == 'Renamed Drive'
    assert updated['location']['city'] == 'Pune'
    assert updated['requirements'] == ['Bring a photo ID', 'Eat before donating']

    response = client.put(f"/api/drives/{drive['_id']}", headers=admin_headers, json={'targetDonors': 80})
    assert response.status_code == 200
    assert response.get_json()['drive']['targetDonors'] == 80


def test_completed_donations_cannot_exceed_registrations(client, hospital_headers, patient_headers):
    drive = create_drive(client, hospital_headers)
    client.post(f"/api/drives/{drive['_id']}/register", headers=patient_headers)

    response = client.put(f"/api/drives/{drive['_id']}", headers=hospital_headers, json={'completedDonations': 5})
    assert response.status_code == 400

    response = client.put(f"/api/drives/{drive['_id']}", headers=hospital_headers,
                          json={'completedDonations': 1, 'status': 'completed'})
    assert response.status_code == 200
    updated = response.get_json()['drive']
    assert updated['completedDonations'] == 1
    assert updated['successRate'] == 100
    assert updated['status'] == 'completed'
