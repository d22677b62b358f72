from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.blood import BloodInventory
from bloodbank.models.donor import Donor
from bloodbank.forms.inventory_forms import InventoryForm
from bloodbank.forms.base import merge_payload
from bloodbank.utils.api import json_body, validation_error
from bloodbank.utils.compatibility import is_valid_blood_group, get_compatible_donors
from bloodbank.utils.decorators import roles_required
from bloodbank.utils.inventory import expire_outdated_units, inventory_summary, compatible_units
from datetime import date

inventory = Blueprint('inventory', __name__)


def apply_inventory_form(unit, form):
    unit.blood_group = form.blood_group.data
    unit.units_available = form.units_available.data
    unit.units_reserved = form.units_reserved.data or 0
    unit.collection_date = form.collection_date.data or date.today()
    unit.expiry_date = form.expiry_date.data
    unit.blood_bank_location = (form.blood_bank_location.data or 'Main Bank').strip()
    unit.donor_id = form.donor_id.data
    unit.status = form.status.data
    unit.hiv = form.test_results.form.hiv.data
    unit.hepatitis_b = form.test_results.form.hepatitis_b.data
    unit.hepatitis_c = form.test_results.form.hepatitis_c.data
    unit.syphilis = form.test_results.form.syphilis.data

    # Screened-positive or out-of-date stock still in circulation is withdrawn
    if unit.status in ('available', 'reserved') and (unit.has_positive_screening() or unit.is_past_expiry()):
        unit.mark_expired()


@inventory.route('', methods=['POST'])
@login_required
@roles_required('admin', 'hospital')
def create_inventory():
    form = InventoryForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    unit = BloodInventory(added_by=current_user.id)
    apply_inventory_form(unit, form)

    try:
        db.session.add(unit)
        if unit.donor_id:
            donor = db.session.get(Donor, unit.donor_id)
            donor.record_donation(unit.collection_date)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding inventory: {str(e)}")
        abort(500, description='Failed to add blood inventory')

    current_app.logger.info(
        f"Added {unit.units_available} units of {unit.blood_group} ({unit.status}) by user {current_user.id}"
    )
    return jsonify({'message': 'Blood inventory added successfully', 'inventory': unit.to_dict()}), 201


@inventory.route('', methods=['GET'])
@login_required
@roles_required('admin', 'hospital')
def list_inventory():
    if expire_outdated_units():
        db.session.commit()

    query = BloodInventory.query

    blood_group = request.args.get('bloodGroup')
    if blood_group:
        query = query.filter(BloodInventory.blood_group == blood_group)

    location = request.args.get('location')
    if location:
        query = query.filter(BloodInventory.blood_bank_location.ilike(f'%{location}%'))

    # The summary covers every status so the cards stay meaningful under a status filter
    summary = inventory_summary(query)

    status = request.args.get('status')
    if status:
        query = query.filter(BloodInventory.status == status)

    units = query.order_by(BloodInventory.expiry_date.asc()).all()
    return jsonify({
        'inventory': [unit.to_dict() for unit in units],
        'summary': summary
    })


@inventory.route('/<int:inventory_id>', methods=['PUT'])
@login_required
@roles_required('admin', 'hospital')
def update_inventory(inventory_id):
    unit = db.get_or_404(BloodInventory, inventory_id, description='Inventory record not found')

    form = InventoryForm.from_json(merge_payload(unit.to_dict(), json_body()))
    if not form.validate():
        return validation_error(form)

    previous_donor_id = unit.donor_id
    previous_units = unit.units_available
    apply_inventory_form(unit, form)
    # A stock correction also corrects what was collected
    if unit.units_available != previous_units:
        unit.units_collected = unit.units_available + unit.units_drawn

    try:
        if unit.donor_id and unit.donor_id != previous_donor_id:
            db.session.get(Donor, unit.donor_id).record_donation(unit.collection_date)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating inventory {inventory_id}: {str(e)}")
        abort(500, description='Failed to update blood inventory')

    current_app.logger.info(f"Inventory {inventory_id} updated by user {current_user.id}")
    return jsonify({'message': 'Blood inventory updated successfully', 'inventory': unit.to_dict()})


@inventory.route('/compatible/<blood_group>', methods=['GET'])
@login_required
@roles_required('admin', 'hospital')
def compatible_inventory(blood_group):
    blood_group = blood_group.strip().upper().replace(' ', '+')
    if not is_valid_blood_group(blood_group):
        abort(400, description=f'Unknown blood group: {blood_group}')

    units_needed = request.args.get('unitsNeeded', type=int)
    if units_needed is not None and units_needed < 1:
        abort(400, description='unitsNeeded must be a positive number')

    units = compatible_units(blood_group)
    total_available = sum(unit.units_available for unit in units)
    return jsonify({
        'bloodGroup': blood_group,
        'compatibleGroups': get_compatible_donors(blood_group),
        'inventory': [unit.to_dict() for unit in units],
        'totalAvailable': total_available,
        'unitsNeeded': units_needed,
        'sufficient': total_available >= units_needed if units_needed else total_available > 0
    })
