from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.blood import BloodRequest, URGENCY_LEVELS
from bloodbank.models.user import User
from bloodbank.forms.request_forms import BloodRequestForm, RequestStatusForm
from bloodbank.utils.api import json_body, validation_error, paginate
from bloodbank.utils.decorators import roles_required
from bloodbank.utils.inventory import allocate_units, InsufficientStockError
from bloodbank.utils.notifications import send_notification, notify_role
from sqlalchemy import case, or_

blood_requests = Blueprint('blood_requests', __name__)

# Most urgent first
URGENCY_ORDER = case({level: rank for rank, level in enumerate(reversed(URGENCY_LEVELS))},
                     value=BloodRequest.urgency, else_=len(URGENCY_LEVELS))

NOTIFICATION_PRIORITY = {'low': 'low', 'medium': 'medium', 'high': 'high', 'critical': 'high'}


def visible_requests(user):
    query = BloodRequest.query
    if user.is_hospital():
        query = query.filter(or_(BloodRequest.hospital_id == user.id, BloodRequest.created_by == user.id))
    elif user.is_patient():
        query = query.filter(or_(BloodRequest.patient_id == user.id, BloodRequest.created_by == user.id))
    return query


def get_visible_request_or_404(request_id):
    blood_request = db.get_or_404(BloodRequest, request_id, description='Blood request not found')
    if not blood_request.is_visible_to(current_user):
        abort(403, description='You do not have access to this request')
    return blood_request


@blood_requests.route('', methods=['POST'])
@login_required
@roles_required('patient', 'hospital')
def create_request():
    form = BloodRequestForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    blood_request = BloodRequest(
        blood_group=form.blood_group.data,
        units_needed=form.units_needed.data,
        urgency=form.urgency.data,
        patient_name=form.patient_name.data.strip(),
        patient_age=form.patient_age.data,
        reason=form.reason.data or None,
        required_by=form.required_by.data,
        created_by=current_user.id
    )
    if current_user.is_hospital():
        blood_request.hospital_id = current_user.id
    else:
        blood_request.patient_id = current_user.id
        if form.hospital_id.data:
            blood_request.hospital_id = int(form.hospital_id.data)

    try:
        db.session.add(blood_request)
        db.session.flush()

        message = (f"{blood_request.request_id}: {blood_request.units_needed} units of "
                   f"{blood_request.blood_group} needed by {blood_request.required_by.isoformat()} "
                   f"({blood_request.urgency} urgency)")
        priority = NOTIFICATION_PRIORITY[blood_request.urgency]
        if blood_request.urgency == 'critical':
            notify_role('admin', 'Critical blood request', message, notification_type='blood_request',
                        priority=priority, related_entity_type='blood_request',
                        related_entity_id=blood_request.id)
        if current_user.is_patient() and blood_request.hospital_id:
            hospital = db.session.get(User, blood_request.hospital_id)
            send_notification(hospital, 'New blood request', message, notification_type='blood_request',
                              priority=priority, related_entity_type='blood_request',
                              related_entity_id=blood_request.id)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating blood request: {str(e)}")
        abort(500, description='Failed to create blood request')

    current_app.logger.info(f"Blood request {blood_request.request_id} created by user {current_user.id}")
    return jsonify({'message': 'Blood request created successfully', 'request': blood_request.to_dict()}), 201


@blood_requests.route('', methods=['GET'])
@login_required
def list_requests():
    query = visible_requests(current_user)

    status = request.args.get('status')
    if status:
        query = query.filter(BloodRequest.status == status)

    urgency = request.args.get('urgency')
    if urgency:
        query = query.filter(BloodRequest.urgency == urgency)

    blood_group = request.args.get('bloodGroup')
    if blood_group:
        query = query.filter(BloodRequest.blood_group == blood_group)

    query = query.order_by(URGENCY_ORDER, BloodRequest.created_at.desc(), BloodRequest.id.desc())
    return jsonify(paginate(query, BloodRequest.to_dict))


@blood_requests.route('/<int:request_id>', methods=['GET'])
@login_required
def get_request(request_id):
    return jsonify(get_visible_request_or_404(request_id).to_dict())


@blood_requests.route('/<int:request_id>/status', methods=['PUT'])
@login_required
def update_request_status(request_id):
    blood_request = get_visible_request_or_404(request_id)

    payload = json_body()
    form = RequestStatusForm.from_json(payload)
    if not form.validate():
        return validation_error(form)

    new_status = form.status.data
    old_status = blood_request.status

    if current_user.is_patient():
        if new_status != 'cancelled' or old_status != 'pending':
            abort(403, description='Patients can only cancel their own pending requests')
    elif current_user.is_hospital() and not current_user.is_verified:
        abort(403, description='Your hospital account is pending verification')

    if new_status != old_status and not blood_request.can_transition_to(new_status):
        abort(400, description=f'Cannot change a {old_status} request to {new_status}')

    if new_status != old_status:
        if new_status == 'approved':
            blood_request.mark_approved(current_user._get_current_object())
        elif new_status == 'rejected':
            blood_request.mark_rejected()
        elif new_status == 'cancelled':
            blood_request.mark_cancelled()
        elif new_status == 'fulfilled':
            try:
                allocations = allocate_units(blood_request.blood_group, blood_request.units_needed)
            except InsufficientStockError as e:
                db.session.rollback()
                abort(400, description=str(e))
            blood_request.mark_fulfilled(allocations)

    if 'notes' in payload:
        blood_request.notes = form.notes.data or None

    try:
        if new_status != old_status:
            message = f"Blood request {blood_request.request_id} is now {new_status}."
            if blood_request.notes:
                message += f" Notes: {blood_request.notes}"
            for user_id in {blood_request.patient_id, blood_request.hospital_id} - {None, current_user.id}:
                send_notification(db.session.get(User, user_id), f'Blood request {new_status}', message,
                                  notification_type='blood_request',
                                  priority='high' if new_status in ('approved', 'fulfilled') else 'medium',
                                  related_entity_type='blood_request', related_entity_id=blood_request.id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating blood request {request_id}: {str(e)}")
        abort(500, description='Failed to update request')

    current_app.logger.info(
        f"Blood request {blood_request.request_id} {old_status} -> {new_status} by user {current_user.id}"
    )
    return jsonify({'message': f'Request status updated to {new_status}', 'request': blood_request.to_dict()})
