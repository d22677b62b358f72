from datetime import date, timedelta
from bloodbank import db
from bloodbank.models.blood import BloodInventory
from bloodbank.utils.compatibility import BLOOD_GROUPS


def days_from_now(days):
    return (date.today() + timedelta(days=days)).isoformat()


def test_add_inventory_defaults(client, hospital_headers):
    response = client.post('/api/inventory', headers=hospital_headers, json={
        'bloodGroup': 'A+',
        'unitsAvailable': 5,
        'expiryDate': days_from_now(35),
    })
    assert response.status_code == 201
    unit = response.get_json()['inventory']
    assert unit['status'] == 'available'
    assert unit['bloodBankLocation'] == 'Main Bank'
    assert unit['collectionDate'] == date.today().isoformat()
    assert unit['testResults'] == {'hiv': 'negative', 'hepatitisB': 'negative',
                                   'hepatitisC': 'negative', 'syphilis': 'negative'}


def test_positive_screening_is_stored_as_expired(client, hospital_headers):
    response = client.post('/api/inventory', headers=hospital_headers, json={
        'bloodGroup': 'B+',
        'unitsAvailable': 2,
        'expiryDate': days_from_now(35),
        'testResults': {'hepatitisB': 'positive'},
    })
    assert response.status_code == 201
    unit = response.get_json()['inventory']
    assert unit['status'] == 'expired'
    assert unit['testResults']['hepatitisB'] == 'positive'


def test_expiry_must_follow_collection(client, hospital_headers):
    response = client.post('/api/inventory', headers=hospital_headers, json={
        'bloodGroup': 'B+',
        'unitsAvailable': 2,
        'collectionDate': days_from_now(-3),
        'expiryDate': days_from_now(-5),
    })
    assert response.status_code == 400
    assert 'expiry_date' in response.get_json()['errors']


def test_linking_a_donor_records_the_donation(client, hospital_headers):
    donor = client.post('/api/donors', headers=hospital_headers, json={
        'name': 'Rahul Sharma', 'email': 'rahul@mail.com', 'phone': '9876543210', 'bloodGroup': 'O+',
        'dateOfBirth': '1990-05-15', 'gender': 'male', 'weight': 72,
    }).get_json()['donor']

    response = client.post('/api/inventory', headers=hospital_headers, json={
        'bloodGroup': 'O+',
        'unitsAvailable': 1,
        'expiryDate': days_from_now(35),
        'donorId': donor['_id'],
    })
    assert response.status_code == 201
    assert response.get_json()['inventory']['donorId'] == donor['_id']

    updated = client.get(f"/api/donors/{donor['_id']}", headers=hospital_headers).get_json()
    assert updated['totalDonations'] == 1
    assert updated['lastDonationDate'] == date.today().isoformat()
    assert updated['isEligible'] is False


def test_unknown_donor_is_rejected(client, hospital_headers):
    response = client.post('/api/inventory', headers=hospital_headers, json={
        'bloodGroup': 'O+', 'unitsAvailable': 1, 'expiryDate': days_from_now(35), 'donorId': 999,
    })
    assert response.status_code == 400
    assert 'donor_id' in response.get_json()['errors']


def test_list_inventory_with_summary(client, hospital_headers, add_stock):
    add_stock('A+', 12)
    add_stock('A+', 3, status='reserved')
    add_stock('O-', 4)

    response = client.get('/api/inventory', headers=hospital_headers)
    assert response.status_code == 200
    data = response.get_json()
    assert len(data['inventory']) == 3
    summary = data['summary']
    assert set(summary) == set(BLOOD_GROUPS)
    assert summary['A+']['available'] == 12
    assert summary['A+']['reserved'] == 3
    assert summary['A+']['total'] == 15
    assert summary['A+']['low'] is False
    assert summary['O-']['available'] == 4
    assert summary['O-']['low'] is True
    assert summary['B+']['total'] == 0


def test_list_inventory_filters(client, hospital_headers, add_stock):
    add_stock('A+', 12, blood_bank_location='North Wing')
    add_stock('O-', 4)

    data = client.get('/api/inventory?bloodGroup=O-', headers=hospital_headers).get_json()
    assert [u['bloodGroup'] for u in data['inventory']] == ['O-']

    data = client.get('/api/inventory?location=north', headers=hospital_headers).get_json()
    assert [u['bloodBankLocation'] for u in data['inventory']] == ['North Wing']


def test_outdated_units_expire_on_read(app, client, hospital_headers, add_stock):
    unit_id = add_stock('AB+', 3, expires_in=-1, collected_days_ago=40)

    data = client.get('/api/inventory?status=expired', headers=hospital_headers).get_json()
    assert [u['_id'] for u in data['inventory']] == [str(unit_id)]
    assert data['summary']['AB+']['expired'] == 3

    with app.app_context():
        assert db.session.get(BloodInventory, unit_id).status == 'expired'


def test_update_inventory_is_partial(client, hospital_headers, add_stock):
    unit_id = add_stock('A+', 5, blood_bank_location='North Wing')
    response = client.put(f'/api/inventory/{unit_id}', headers=hospital_headers, json={'unitsAvailable': 8})
    assert response.status_code == 200
    unit = response.get_json()['inventory']
    assert unit['unitsAvailable'] == 8
    assert unit['unitsCollected'] == 8
    assert unit['id'] == str(unit_id)
    assert unit['bloodBankLocation'] == 'North Wing'
    assert unit['status'] == 'available'


def test_patients_cannot_see_inventory(client, patient_headers):
    assert client.get('/api/inventory', headers=patient_headers).status_code == 403


def test_compatible_inventory(client, hospital_headers, add_stock):
    late = add_stock('A+', 2, expires_in=20)
    early = add_stock('O-', 3, expires_in=5)
    add_stock('B+', 9)
    add_stock('A-', 4, status='expired')

    response = client.get('/api/inventory/compatible/A%2B?unitsNeeded=4', headers=hospital_headers)
    assert response.status_code == 200
    data = response.get_json()
    assert data['bloodGroup'] == 'A+'
    assert data['compatibleGroups'] == ['A+', 'A-', 'O+', 'O-']
    assert [u['_id'] for u in data['inventory']] == [str(early), str(late)]
    assert data['totalAvailable'] == 5
    assert data['unitsNeeded'] == 4
    assert data['sufficient'] is True

    data = client.get('/api/inventory/compatible/A%2B?unitsNeeded=6', headers=hospital_headers).get_json()
    assert data['sufficient'] is False


def test_compatible_inventory_validation(client, hospital_headers):
    assert client.get('/api/inventory/compatible/X%2B', headers=hospital_headers).status_code == 400
    response = client.get('/api/inventory/compatible/A%2B?unitsNeeded=0', headers=hospital_headers)
    assert response.status_code == 400


def test_reserved_batches_are_not_counted_as_available(client, hospital_headers, admin_headers, add_stock):
    add_stock('A+', 8, status='reserved')

    summary = client.get('/api/inventory', headers=hospital_headers).get_json()['summary']
    assert summary['A+']['available'] == 0
    assert summary['A+']['reserved'] == 8
    assert summary['A+']['low'] is True

    dashboard = client.get('/api/admin/dashboard', headers=admin_headers).get_json()
    assert {'_id': 'A+', 'totalUnits': 0, 'batches': 0} in dashboard['lowInventory']

    data = client.get('/api/inventory/compatible/A%2B', headers=hospital_headers).get_json()
    assert data['totalAvailable'] == 0


def test_editing_a_used_batch_past_expiry_keeps_it_used(client, hospital_headers, add_stock):
    unit_id = add_stock('B+', 4, status='used', expires_in=-5, collected_days_ago=40)

    response = client.put(f'/api/inventory/{unit_id}', headers=hospital_headers,
                          json={'bloodBankLocation': 'Cold Store 2'})
    assert response.status_code == 200
    unit = response.get_json()['inventory']
    assert unit['status'] == 'used'
    assert unit['bloodBankLocation'] == 'Cold Store 2'


def test_editing_an_available_batch_past_expiry_expires_it(client, hospital_headers, add_stock):
    unit_id = add_stock('B+', 4, expires_in=-5, collected_days_ago=40)

    response = client.put(f'/api/inventory/{unit_id}', headers=hospital_headers,
                          json={'bloodBankLocation': 'Cold Store 2'})
    assert response.get_json()['inventory']['status'] == 'expired'
