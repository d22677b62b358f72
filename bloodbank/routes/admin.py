from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.user import User
from bloodbank.models.donor import Donor
from bloodbank.models.blood import BloodRequest
from bloodbank.models.drive import DonationDrive, OPEN_DRIVE_STATUSES
from bloodbank.forms.admin_forms import VerifyHospitalForm, AdminNotificationForm
from bloodbank.utils.api import json_body, validation_error, paginate
from bloodbank.utils.compatibility import BLOOD_GROUPS
from bloodbank.utils.decorators import admin_required
from bloodbank.utils.inventory import available_units_by_group, expire_outdated_units
from bloodbank.utils.notifications import send_notification, notify_users
from bloodbank.utils.scheduler import update_drive_statuses
from sqlalchemy import or_

admin = Blueprint('admin', __name__)

RECENT_REQUESTS_LIMIT = 5


@admin.route('/dashboard', methods=['GET'])
@login_required
@admin_required
def dashboard():
    if expire_outdated_units() + update_drive_statuses():
        db.session.commit()

    stats = {
        'totalDonors': Donor.query.count(),
        'totalRequests': BloodRequest.query.count(),
        'pendingRequests': BloodRequest.query.filter_by(status='pending').count(),
        'criticalRequests': BloodRequest.query.filter(
            BloodRequest.urgency == 'critical',
            BloodRequest.status.in_(['pending', 'approved'])
        ).count(),
        'activeDrives': DonationDrive.query.filter(DonationDrive.status.in_(OPEN_DRIVE_STATUSES)).count(),
        'totalUsers': User.query.count(),
        'patients': User.query.filter_by(role='patient').count(),
        'hospitals': User.query.filter_by(role='hospital').count(),
    }

    available = available_units_by_group()
    inventory_summary = [
        {'_id': bg, 'totalUnits': available.get(bg, (0, 0))[0], 'batches': available.get(bg, (0, 0))[1]}
        for bg in BLOOD_GROUPS
    ]
    threshold = current_app.config['LOW_INVENTORY_THRESHOLD']
    low_inventory = [group for group in inventory_summary if group['totalUnits'] < threshold]

    recent_requests = BloodRequest.query.order_by(
        BloodRequest.created_at.desc(), BloodRequest.id.desc()
    ).limit(RECENT_REQUESTS_LIMIT).all()

    return jsonify({
        'stats': stats,
        'inventorySummary': inventory_summary,
        'recentRequests': [r.to_dict() for r in recent_requests],
        'lowInventory': low_inventory,
    })


@admin.route('/users', methods=['GET'])
@login_required
@admin_required
def list_users():
    query = User.query

    role = request.args.get('role')
    if role:
        query = query.filter(User.role == role)

    search = request.args.get('search')
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    query = query.order_by(User.created_at.desc(), User.id.desc())
    return jsonify(paginate(query, User.to_dict))


@admin.route('/hospitals/<int:user_id>/verify', methods=['PUT'])
@login_required
@admin_required
def verify_hospital(user_id):
    hospital = db.get_or_404(User, user_id, description='Hospital not found')
    if not hospital.is_hospital():
        abort(404, description='Hospital not found')

    form = VerifyHospitalForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    hospital.is_verified = form.is_verified.data
    if hospital.is_verified:
        title, message = 'Hospital verified', 'Your hospital account has been verified. You can now manage requests and drives.'
    else:
        title, message = 'Hospital verification revoked', 'Your hospital account is no longer verified. Please contact the administrator.'
    send_notification(hospital, title, message, priority='high',
                      related_entity_type='user', related_entity_id=hospital.id)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error verifying hospital {user_id}: {str(e)}")
        abort(500, description='Failed to update hospital verification')

    state = 'verified' if hospital.is_verified else 'unverified'
    current_app.logger.info(f"Hospital {user_id} marked {state} by admin {current_user.id}")
    return jsonify({'message': f'Hospital {state} successfully', 'user': hospital.to_dict()})


@admin.route('/notifications', methods=['POST'])
@login_required
@admin_required
def send_admin_notification():
    form = AdminNotificationForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    if form.user_id.data:
        recipients = [db.session.get(User, int(form.user_id.data))]
    elif form.role.data:
        recipients = User.query.filter_by(role=form.role.data).all()
    else:
        recipients = User.query.all()

    count = notify_users(recipients, form.title.data.strip(), form.message.data.strip(),
                         notification_type=form.type.data, priority=form.priority.data)
    db.session.commit()

    current_app.logger.info(f"Admin {current_user.id} sent '{form.title.data}' to {count} users")
    return jsonify({'message': f'Notification sent to {count} users', 'count': count})
