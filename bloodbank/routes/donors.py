from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.donor import Donor
from bloodbank.forms.donor_forms import DonorForm
from bloodbank.forms.base import merge_payload
from bloodbank.utils.api import json_body, validation_error, paginate, bool_arg
from bloodbank.utils.decorators import roles_required
from sqlalchemy import or_

donors = Blueprint('donors', __name__)


def apply_donor_form(donor, form):
    donor.name = form.name.data.strip()
    donor.email = form.email.data.strip().lower()
    donor.phone = form.phone.data
    donor.blood_group = form.blood_group.data
    donor.date_of_birth = form.date_of_birth.data
    donor.gender = form.gender.data
    donor.weight = form.weight.data
    donor.street = form.address.form.street.data or None
    donor.city = form.address.form.city.data or None
    donor.state = form.address.form.state.data or None
    donor.zip_code = form.address.form.zip_code.data or None
    donor.medical_history = form.medical_history.data or None
    donor.last_donation_date = form.last_donation_date.data
    donor.emergency_contact_name = form.emergency_contact.form.name.data or None
    donor.emergency_contact_phone = form.emergency_contact.form.phone.data or None
    donor.refresh_eligibility()


@donors.route('', methods=['POST'])
@login_required
@roles_required('admin', 'hospital')
def create_donor():
    form = DonorForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    donor = Donor(created_by=current_user.id)
    apply_donor_form(donor, form)

    try:
        db.session.add(donor)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating donor: {str(e)}")
        abort(500, description='Failed to create donor')

    current_app.logger.info(f"Donor {donor.id} registered by user {current_user.id}")
    return jsonify({'message': 'Donor registered successfully', 'donor': donor.to_dict()}), 201


@donors.route('', methods=['GET'])
@login_required
@roles_required('admin', 'hospital')
def list_donors():
    query = Donor.query

    blood_group = request.args.get('bloodGroup')
    if blood_group:
        query = query.filter(Donor.blood_group == blood_group)

    city = request.args.get('city')
    if city:
        query = query.filter(Donor.city.ilike(f'%{city}%'))

    is_eligible = bool_arg('isEligible')
    if is_eligible is not None:
        query = query.filter(Donor.is_eligible == is_eligible)

    search = request.args.get('search')
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(Donor.name.ilike(pattern), Donor.email.ilike(pattern), Donor.phone.ilike(pattern)))

    query = query.order_by(Donor.created_at.desc())
    return jsonify(paginate(query, Donor.to_dict))


@donors.route('/<int:donor_id>', methods=['GET'])
@login_required
@roles_required('admin', 'hospital')
def get_donor(donor_id):
    donor = db.get_or_404(Donor, donor_id, description='Donor not found')
    return jsonify(donor.to_dict())


@donors.route('/<int:donor_id>', methods=['PUT'])
@login_required
@roles_required('admin', 'hospital')
def update_donor(donor_id):
    donor = db.get_or_404(Donor, donor_id, description='Donor not found')

    form = DonorForm.from_json(merge_payload(donor.to_dict(), json_body()))
    if not form.validate():
        return validation_error(form)

    apply_donor_form(donor, form)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating donor {donor_id}: {str(e)}")
        abort(500, description='Failed to update donor')

    return jsonify({'message': 'Donor updated successfully', 'donor': donor.to_dict()})


@donors.route('/<int:donor_id>', methods=['DELETE'])
@login_required
@roles_required('admin')
def delete_donor(donor_id):
    donor = db.get_or_404(Donor, donor_id, description='Donor not found')

    # Keep the collected units, just forget who gave them
    for unit in donor.donations:
        unit.donor_id = None

    try:
        db.session.delete(donor)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting donor {donor_id}: {str(e)}")
        abort(500, description='Failed to delete donor')

    current_app.logger.info(f"Donor {donor_id} deleted by admin {current_user.id}")
    return jsonify({'message': f'Donor {donor.name} has been deleted'})
