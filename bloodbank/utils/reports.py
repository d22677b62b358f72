from bloodbank.models.blood import BloodInventory, BloodRequest, INVENTORY_STATUSES, URGENCY_LEVELS, REQUEST_STATUSES
from bloodbank.models.donor import Donor
from bloodbank.models.drive import DonationDrive
from bloodbank.utils.compatibility import BLOOD_GROUPS
from flask import current_app
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib import colors
from datetime import date, datetime, time, timedelta
from calendar import month_name
import csv
import io

LINE_HEIGHT = 0.6 * cm


def day_start(day):
    return datetime.combine(day, time.min)


def inventory_report(start_date=None, end_date=None, blood_group=None, today=None):
    """
    Units per blood group and status for batches collected in the period,
    plus the usable batches that expire within the warning window
    """
    today = today or date.today()
    query = BloodInventory.query
    if start_date:
        query = query.filter(BloodInventory.collection_date >= start_date)
    if end_date:
        query = query.filter(BloodInventory.collection_date <= end_date)
    if blood_group:
        query = query.filter(BloodInventory.blood_group == blood_group)
    units = query.all()

    groups = [blood_group] if blood_group else BLOOD_GROUPS
    by_group = {bg: {status: 0 for status in INVENTORY_STATUSES} for bg in groups}
    by_status = {status: 0 for status in INVENTORY_STATUSES}
    for unit in units:
        counts = by_group.setdefault(unit.blood_group, {status: 0 for status in INVENTORY_STATUSES})
        drawn = unit.units_drawn
        counts[unit.status] += unit.units_available
        counts['used'] += drawn
        by_status[unit.status] += unit.units_available
        by_status['used'] += drawn

    warning_date = today + timedelta(days=current_app.config['EXPIRY_WARNING_DAYS'])
    expiring = [unit for unit in units
                if unit.status == 'available' and today <= unit.expiry_date <= warning_date]
    expiring.sort(key=lambda unit: (unit.expiry_date, unit.id))

    return {
        'period': {
            'startDate': start_date.isoformat() if start_date else None,
            'endDate': end_date.isoformat() if end_date else None,
        },
        'byBloodGroup': [dict(bloodGroup=bg, total=sum(counts.values()), **counts)
                         for bg, counts in by_group.items()],
        'byStatus': by_status,
        'totalUnits': sum(by_status.values()),
        'expiringSoon': [{
            '_id': str(unit.id),
            'id': str(unit.id),
            'bloodGroup': unit.blood_group,
            'unitsAvailable': unit.units_available,
            'expiryDate': unit.expiry_date.isoformat(),
            'bloodBankLocation': unit.blood_bank_location,
        } for unit in expiring],
    }


def donations_report(year):
    """
    Month by month collection figures for one calendar year
    """
    start, end = date(year, 1, 1), date(year, 12, 31)
    months = [{'month': month, 'name': month_name[month], 'collectedUnits': 0,
               'newDonors': 0, 'driveDonations': 0} for month in range(1, 13)]
    by_group = {bg: 0 for bg in BLOOD_GROUPS}

    units = BloodInventory.query.filter(
        BloodInventory.collection_date >= start, BloodInventory.collection_date <= end
    ).all()
    for unit in units:
        months[unit.collection_date.month - 1]['collectedUnits'] += unit.units_collected
        by_group[unit.blood_group] = by_group.get(unit.blood_group, 0) + unit.units_collected

    donors = Donor.query.filter(
        Donor.created_at >= day_start(start), Donor.created_at < day_start(end + timedelta(days=1))
    ).all()
    for donor in donors:
        months[donor.created_at.month - 1]['newDonors'] += 1

    drives = DonationDrive.query.filter(
        DonationDrive.start_date >= start, DonationDrive.start_date <= end
    ).all()
    for drive in drives:
        months[drive.start_date.month - 1]['driveDonations'] += drive.completed_donations or 0

    return {
        'year': year,
        'monthly': months,
        'byBloodGroup': by_group,
        'totals': {
            'collectedUnits': sum(m['collectedUnits'] for m in months),
            'newDonors': sum(m['newDonors'] for m in months),
            'driveDonations': sum(m['driveDonations'] for m in months),
        },
    }


def requests_report(start_date=None, end_date=None, status=None):
    """
    Request volumes by status, urgency and blood group, with the fulfillment rate
    """
    query = BloodRequest.query
    if start_date:
        query = query.filter(BloodRequest.created_at >= day_start(start_date))
    if end_date:
        query = query.filter(BloodRequest.created_at < day_start(end_date + timedelta(days=1)))
    if status:
        query = query.filter(BloodRequest.status == status)
    blood_requests = query.all()

    by_status = {s: 0 for s in REQUEST_STATUSES}
    by_urgency = {u: 0 for u in URGENCY_LEVELS}
    by_group = {bg: 0 for bg in BLOOD_GROUPS}
    for blood_request in blood_requests:
        by_status[blood_request.status] = by_status.get(blood_request.status, 0) + 1
        by_urgency[blood_request.urgency] = by_urgency.get(blood_request.urgency, 0) + 1
        by_group[blood_request.blood_group] = by_group.get(blood_request.blood_group, 0) + 1

    total = len(blood_requests)
    total_units = sum(r.units_needed for r in blood_requests)
    return {
        'period': {
            'startDate': start_date.isoformat() if start_date else None,
            'endDate': end_date.isoformat() if end_date else None,
        },
        'totalRequests': total,
        'byStatus': by_status,
        'byUrgency': by_urgency,
        'byBloodGroup': by_group,
        'fulfillmentRate': round(by_status.get('fulfilled', 0) / total * 100, 1) if total else 0,
        'averageUnits': round(total_units / total, 1) if total else 0,
        'totalUnitsRequested': total_units,
    }


def report_rows(report):
    """
    Flatten a report into (section, item, value) rows for file exports
    """
    rows = []
    for section, value in report.items():
        if isinstance(value, dict):
            for key, item in value.items():
                rows.append((section, key, '' if item is None else item))
        elif isinstance(value, list):
            for index, entry in enumerate(value, start=1):
                label = entry.get('bloodGroup') or entry.get('name') or str(index)
                for key, item in entry.items():
                    if key in ('bloodGroup', 'name'):
                        continue
                    rows.append((section, f'{label} {key}', item))
        else:
            rows.append((section, '', value))
    return rows


def render_csv(report):
    si = io.StringIO()
    cw = csv.writer(si)
    cw.writerow(['Section', 'Item', 'Value'])
    for row in report_rows(report):
        cw.writerow(row)
    return io.BytesIO(si.getvalue().encode('utf-8'))


def render_pdf(title, report):
    buffer = io.BytesIO()
    p = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    def page_header():
        p.setFillColor(colors.red)
        p.setFont('Helvetica-Bold', 18)
        p.drawString(2 * cm, height - 2 * cm, title)
        p.setFillColor(colors.black)
        p.setFont('Helvetica', 9)
        p.drawString(2 * cm, height - 2.6 * cm, f"Generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M')} UTC")
        return height - 3.6 * cm

    y = page_header()
    current_section = None
    for section, item, value in report_rows(report):
        if y < 2 * cm:
            p.showPage()
            y = page_header()
        if section != current_section:
            current_section = section
            y -= LINE_HEIGHT / 2
            p.setFont('Helvetica-Bold', 11)
            p.drawString(2 * cm, y, section)
            y -= LINE_HEIGHT
        p.setFont('Helvetica', 10)
        p.drawString(2.5 * cm, y, str(item))
        p.drawRightString(width - 2 * cm, y, str(value))
        y -= LINE_HEIGHT

    p.showPage()
    p.save()
    buffer.seek(0)
    return buffer
