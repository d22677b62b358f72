from datetime import date, timedelta


def test_inventory_report(client, admin_headers, add_stock):
    add_stock('A+', 6, expires_in=3)
    add_stock('A+', 4, status='used')
    add_stock('O-', 2, expires_in=30)

    response = client.get('/api/reports/inventory', headers=admin_headers)
    assert response.status_code == 200
    report = response.get_json()
    assert report['totalUnits'] == 12
    assert report['byStatus']['available'] == 8
    assert report['byStatus']['used'] == 4

    by_group = {row['bloodGroup']: row for row in report['byBloodGroup']}
    assert by_group['A+']['available'] == 6
    assert by_group['A+']['used'] == 4
    assert by_group['A+']['total'] == 10

    assert [(u['bloodGroup'], u['unitsAvailable']) for u in report['expiringSoon']] == [('A+', 6)]


def test_inventory_report_filters(client, admin_headers, add_stock):
    add_stock('A+', 6)
    add_stock('O-', 2, collected_days_ago=20)
    start = (date.today() - timedelta(days=5)).isoformat()

    report = client.get(f'/api/reports/inventory?startDate={start}', headers=admin_headers).get_json()
    assert report['totalUnits'] == 6

    report = client.get('/api/reports/inventory?bloodGroup=O-', headers=admin_headers).get_json()
    assert [row['bloodGroup'] for row in report['byBloodGroup']] == ['O-']
    assert report['totalUnits'] == 2


def test_report_argument_validation(client, admin_headers):
    assert client.get('/api/reports/inventory?startDate=yesterday', headers=admin_headers).status_code == 400
    assert client.get('/api/reports/inventory?bloodGroup=Q', headers=admin_headers).status_code == 400
    assert client.get('/api/reports/requests?status=lost', headers=admin_headers).status_code == 400
    assert client.get('/api/reports/inventory?format=xml', headers=admin_headers).status_code == 400
    response = client.get('/api/reports/requests?startDate=2024-05-10&endDate=2024-05-01', headers=admin_headers)
    assert response.status_code == 400


def test_reports_are_admin_only(client, hospital_headers):
    assert client.get('/api/reports/inventory', headers=hospital_headers).status_code == 403


def test_donations_report(client, admin_headers, hospital_headers, add_stock):
    client.post('/api/donors', headers=hospital_headers, json={
        'name': 'Rahul Sharma', 'email': 'rahul@mail.com', 'phone': '9876543210', 'bloodGroup': 'O+',
        'dateOfBirth': '1990-05-15', 'gender': 'male', 'weight': 72,
    })
    add_stock('O+', 3, collected_days_ago=0)

    today = date.today()
    report = client.get(f'/api/reports/donations?year={today.year}', headers=admin_headers).get_json()
    assert report['year'] == today.year
    assert len(report['monthly']) == 12
    month = report['monthly'][today.month - 1]
    assert month['collectedUnits'] == 3
    assert month['newDonors'] == 1
    assert report['byBloodGroup']['O+'] == 3
    assert report['totals']['collectedUnits'] == 3

    report = client.get(f'/api/reports/donations?year={today.year - 1}', headers=admin_headers).get_json()
    assert report['totals'] == {'collectedUnits': 0, 'newDonors': 0, 'driveDonations': 0}


def test_requests_report(client, admin_headers, hospital_headers, add_stock):
    add_stock('A+', 10)
    required_by = (date.today() + timedelta(days=3)).isoformat()
    ids = []
    for units, urgency in ((2, 'high'), (4, 'critical')):
        response = client.post('/api/requests', headers=hospital_headers, json={
            'bloodGroup': 'A+', 'unitsNeeded': units, 'urgency': urgency, 'patientName': 'Kiran Rao',
            'patientAge': 30, 'requiredBy': required_by,
        })
        ids.append(response.get_json()['request']['_id'])
    client.put(f'/api/requests/{ids[0]}/status', headers=admin_headers, json={'status': 'approved'})
    client.put(f'/api/requests/{ids[0]}/status', headers=admin_headers, json={'status': 'fulfilled'})

    report = client.get('/api/reports/requests', headers=admin_headers).get_json()
    assert report['totalRequests'] == 2
    assert report['byStatus']['fulfilled'] == 1
    assert report['byStatus']['pending'] == 1
    assert report['byUrgency']['critical'] == 1
    assert report['byBloodGroup']['A+'] == 2
    assert report['fulfillmentRate'] == 50.0
    assert report['averageUnits'] == 3.0

    report = client.get('/api/reports/requests?status=pending', headers=admin_headers).get_json()
    assert report['totalRequests'] == 1


def test_csv_export(client, admin_headers, add_stock):
    add_stock('A+', 6)
    response = client.get('/api/reports/inventory?format=csv', headers=admin_headers)
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'attachment' in response.headers['Content-Disposition']
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0] == 'Section,Item,Value'
    assert 'byStatus,available,6' in lines


def test_pdf_export(client, admin_headers):
    response = client.get('/api/reports/requests?format=pdf', headers=admin_headers)
    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert response.data.startswith(b'%PDF')
