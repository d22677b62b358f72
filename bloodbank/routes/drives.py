from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.drive import DonationDrive, OPEN_DRIVE_STATUSES
from bloodbank.forms.drive_forms import DriveForm
from bloodbank.forms.base import merge_payload
from bloodbank.utils.api import json_body, validation_error, paginate, bool_arg
from bloodbank.utils.decorators import roles_required
from bloodbank.utils.notifications import notify_role
from bloodbank.utils.scheduler import update_drive_statuses
from sqlalchemy.exc import IntegrityError
from datetime import date

drives = Blueprint('drives', __name__)


def refresh_drive_statuses():
    if update_drive_statuses():
        db.session.commit()


def apply_drive_form(drive, form):
    drive.title = form.title.data.strip()
    drive.description = form.description.data or None
    drive.location_name = form.location.form.name.data.strip()
    drive.location_address = form.location.form.address.data.strip()
    drive.city = form.location.form.city.data.strip()
    drive.state = form.location.form.state.data or None
    drive.zip_code = form.location.form.zip_code.data or None
    drive.start_date = form.start_date.data
    drive.end_date = form.end_date.data
    drive.start_time = form.start_time.data
    drive.end_time = form.end_time.data
    drive.target_donors = form.target_donors.data
    drive.requirements = [r.strip() for r in form.requirements.data if r and r.strip()]
    drive.contact_name = form.contact_info.form.name.data or None
    drive.contact_phone = form.contact_info.form.phone.data or None
    drive.contact_email = form.contact_info.form.email.data or None


@drives.route('', methods=['POST'])
@login_required
@roles_required('admin', 'hospital')
def create_drive():
    if current_user.is_hospital() and not current_user.is_verified:
        abort(403, description='Your hospital account is pending verification')

    form = DriveForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    if form.start_date.data < date.today():
        return jsonify({'message': 'start_date: A drive cannot start in the past.',
                        'errors': {'start_date': ['A drive cannot start in the past.']}}), 400

    drive = DonationDrive(organizer_id=current_user.id)
    apply_drive_form(drive, form)
    drive.status = drive.status_for()

    try:
        db.session.add(drive)
        db.session.flush()

        notify_role('patient', f'New donation drive: {drive.title}',
                    f"{drive.title} at {drive.location_name}, {drive.city} on {drive.start_date.isoformat()} "
                    f"from {drive.start_time.strftime('%H:%M')} to {drive.end_time.strftime('%H:%M')}.",
                    notification_type='donation_drive', priority='low',
                    related_entity_type='drive', related_entity_id=drive.id)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating donation drive: {str(e)}")
        abort(500, description='Failed to create donation drive')

    current_app.logger.info(f"Donation drive {drive.id} created by user {current_user.id}")
    return jsonify({'message': 'Donation drive created successfully', 'drive': drive.to_dict(current_user)}), 201


@drives.route('', methods=['GET'])
@login_required
def list_drives():
    refresh_drive_statuses()
    query = DonationDrive.query

    status = request.args.get('status')
    if status:
        query = query.filter(DonationDrive.status == status)

    city = request.args.get('city')
    if city:
        query = query.filter(DonationDrive.city.ilike(f'%{city}%'))

    if bool_arg('upcoming'):
        query = query.filter(
            DonationDrive.status.in_(OPEN_DRIVE_STATUSES),
            DonationDrive.end_date >= date.today()
        ).order_by(DonationDrive.start_date.asc(), DonationDrive.start_time.asc())
    else:
        query = query.order_by(DonationDrive.start_date.desc(), DonationDrive.id.desc())

    return jsonify(paginate(query, DonationDrive.to_dict))


@drives.route('/<int:drive_id>', methods=['GET'])
@login_required
def get_drive(drive_id):
    refresh_drive_statuses()
    drive = db.get_or_404(DonationDrive, drive_id, description='Donation drive not found')
    return jsonify(drive.to_dict(current_user))


@drives.route('/<int:drive_id>', methods=['PUT'])
@login_required
@roles_required('admin', 'hospital')
def update_drive(drive_id):
    drive = db.get_or_404(DonationDrive, drive_id, description='Donation drive not found')
    if not current_user.is_admin() and drive.organizer_id != current_user.id:
        abort(403, description='Only the organizer can update this drive')

    form = DriveForm.from_json(merge_payload(drive.to_dict(), json_body()))
    if not form.validate():
        return validation_error(form)

    completed = form.completed_donations.data
    if completed is not None and completed > drive.registered_donors:
        return jsonify({'message': 'completedDonations: Completed donations cannot exceed registered donors.',
                        'errors': {'completed_donations': ['Completed donations cannot exceed registered donors.']}}), 400

    apply_drive_form(drive, form)
    drive.status = form.status.data
    if completed is not None:
        drive.completed_donations = completed

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating donation drive {drive_id}: {str(e)}")
        abort(500, description='Failed to update donation drive')

    current_app.logger.info(f"Donation drive {drive_id} updated by user {current_user.id}")
    return jsonify({'message': 'Donation drive updated successfully', 'drive': drive.to_dict(current_user)})


@drives.route('/<int:drive_id>/register', methods=['POST'])
@login_required
def register_for_drive(drive_id):
    refresh_drive_statuses()
    drive = db.get_or_404(DonationDrive, drive_id, description='Donation drive not found')

    if not drive.is_open_for_registration():
        abort(400, description=f'Registration is closed for {drive.status} drives')
    if drive.is_registered(current_user):
        abort(400, description='You are already registered for this drive')

    drive.register(current_user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(400, description='You are already registered for this drive')

    current_app.logger.info(f"User {current_user.id} registered for donation drive {drive_id}")
    return jsonify({'message': 'Successfully registered for the donation drive', 'drive': drive.to_dict(current_user)})
