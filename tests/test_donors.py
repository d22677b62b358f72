from datetime import date, timedelta
from bloodbank import db
from bloodbank.models.blood import BloodInventory


def donor_payload(**overrides):
    payload = {
        'name': 'Rahul Sharma',
        'email': 'rahul@mail.com',
        'phone': '9876543210',
        'bloodGroup': 'O+',
        'dateOfBirth': '1990-05-15',
        'gender': 'male',
        'weight': 72,
        'address': {'city': 'Pune', 'state': 'Maharashtra'},
    }
    payload.update(overrides)
    return payload


def create_donor(client, headers, **overrides):
    response = client.post('/api/donors', headers=headers, json=donor_payload(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()['donor']


def test_create_donor(client, hospital_headers):
    response = client.post('/api/donors', headers=hospital_headers, json=donor_payload())
    assert response.status_code == 201
    data = response.get_json()
    assert data['message'] == 'Donor registered successfully'
    donor = data['donor']
    assert donor['isEligible'] is True
    assert donor['eligibilityReasons'] == []
    assert donor['address']['city'] == 'Pune'
    assert donor['totalDonations'] == 0


def test_recent_donor_is_not_eligible(client, hospital_headers):
    last = date.today() - timedelta(days=10)
    donor = create_donor(client, hospital_headers, lastDonationDate=last.isoformat())
    assert donor['isEligible'] is False
    assert 'You must wait 80 more days before donating again' in donor['eligibilityReasons']
    assert donor['nextEligibleDate'] == (last + timedelta(days=90)).isoformat()


def test_underweight_donor_is_not_eligible(client, hospital_headers):
    donor = create_donor(client, hospital_headers, weight=45)
    assert donor['isEligible'] is False
    assert 'Weight must be at least 50 kg' in donor['eligibilityReasons']


def test_create_donor_validation(client, hospital_headers):
    response = client.post('/api/donors', headers=hospital_headers,
                           json=donor_payload(bloodGroup='Z+', dateOfBirth='2999-01-01'))
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert 'blood_group' in errors
    assert 'date_of_birth' in errors


def test_patients_cannot_manage_donors(client, patient_headers):
    assert client.post('/api/donors', headers=patient_headers, json=donor_payload()).status_code == 403
    assert client.get('/api/donors', headers=patient_headers).status_code == 403


def test_list_donors_with_filters(client, hospital_headers):
    create_donor(client, hospital_headers)
    create_donor(client, hospital_headers, name='Priya Nair', email='priya@mail.com', bloodGroup='A-',
                 address={'city': 'Mumbai'}, lastDonationDate=date.today().isoformat())

    response = client.get('/api/donors', headers=hospital_headers)
    data = response.get_json()
    assert data['total'] == 2
    assert data['currentPage'] == 1
    assert data['totalPages'] == 1

    data = client.get('/api/donors?bloodGroup=A-', headers=hospital_headers).get_json()
    assert [d['name'] for d in data['data']] == ['Priya Nair']

    data = client.get('/api/donors?isEligible=false', headers=hospital_headers).get_json()
    assert [d['name'] for d in data['data']] == ['Priya Nair']

    data = client.get('/api/donors?city=pune', headers=hospital_headers).get_json()
    assert [d['name'] for d in data['data']] == ['Rahul Sharma']

    data = client.get('/api/donors?search=priya@', headers=hospital_headers).get_json()
    assert data['total'] == 1


def test_list_donors_paginates(client, hospital_headers):
    for n in range(3):
        create_donor(client, hospital_headers, email=f'donor{n}@mail.com')

    data = client.get('/api/donors?page=2&limit=2', headers=hospital_headers).get_json()
    assert data['total'] == 3
    assert data['totalPages'] == 2
    assert data['currentPage'] == 2
    assert len(data['data']) == 1


def test_get_missing_donor(client, hospital_headers):
    response = client.get('/api/donors/999', headers=hospital_headers)
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Donor not found'


def test_update_donor_recomputes_eligibility(client, hospital_headers):
    donor = create_donor(client, hospital_headers)
    response = client.put(f"/api/donors/{donor['_id']}", headers=hospital_headers, json={'weight': 45})
    assert response.status_code == 200
    updated = response.get_json()['donor']
    assert updated['weight'] == 45
    assert updated['isEligible'] is False
    assert updated['name'] == 'Rahul Sharma'
    assert updated['address']['city'] == 'Pune'


def test_only_admins_delete_donors(client, hospital_headers, admin_headers):
    donor = create_donor(client, hospital_headers)
    assert client.delete(f"/api/donors/{donor['_id']}", headers=hospital_headers).status_code == 403

    response = client.delete(f"/api/donors/{donor['_id']}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/donors/{donor['_id']}", headers=admin_headers).status_code == 404


def test_deleting_donor_keeps_inventory(app, client, hospital_headers, admin_headers, add_stock):
    donor = create_donor(client, hospital_headers)
    unit_id = add_stock('O+', 1, donor_id=int(donor['_id']))

    client.delete(f"/api/donors/{donor['_id']}", headers=admin_headers)

    with app.app_context():
        unit = db.session.get(BloodInventory, unit_id)
        assert unit is not None
        assert unit.donor_id is None


def test_failed_delete_rolls_back(app, client, hospital_headers, admin_headers, monkeypatch):
    donor = create_donor(client, hospital_headers)
    assert donor['id'] == donor['_id']

    def failing_commit():
        raise RuntimeError('database is locked')

    monkeypatch.setattr(db.session, 'commit', failing_commit)
    response = client.delete(f"/api/donors/{donor['_id']}", headers=admin_headers)
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.get_json()['message'] == 'Failed to delete donor'
    assert client.get(f"/api/donors/{donor['_id']}", headers=admin_headers).status_code == 200
