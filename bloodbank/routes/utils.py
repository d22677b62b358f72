from flask import Blueprint, jsonify, current_app, abort
from bloodbank.forms.donor_forms import EligibilityCheckForm
from bloodbank.utils.api import json_body, validation_error
from bloodbank.utils.compatibility import (
    is_valid_blood_group, is_compatible, get_compatible_donors, get_compatible_recipients
)
from bloodbank.utils.eligibility import calculate_age, check_eligibility

utils = Blueprint('utils', __name__)


def normalize_blood_group(value):
    # A literal '+' in a URL path often arrives as a space
    blood_group = value.strip().upper().replace(' ', '+')
    if not is_valid_blood_group(blood_group):
        abort(400, description=f'Unknown blood group: {value}')
    return blood_group


@utils.route('/compatibility/<donor_group>/<recipient_group>', methods=['GET'])
def compatibility(donor_group, recipient_group):
    donor_group = normalize_blood_group(donor_group)
    recipient_group = normalize_blood_group(recipient_group)

    return jsonify({
        'donorBloodGroup': donor_group,
        'recipientBloodGroup': recipient_group,
        'compatible': is_compatible(donor_group, recipient_group),
        'canDonateTo': get_compatible_recipients(donor_group),
        'canReceiveFrom': get_compatible_donors(recipient_group),
    })


@utils.route('/donor-eligibility', methods=['POST'])
def donor_eligibility():
    form = EligibilityCheckForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    if form.date_of_birth.data:
        age = calculate_age(form.date_of_birth.data)
    else:
        age = int(form.age.data)

    is_eligible, reasons, next_eligible_date = check_eligibility(
        age=age,
        weight=form.weight.data,
        last_donation_date=form.last_donation_date.data,
        hemoglobin=form.hemoglobin.data,
        interval_days=current_app.config['DONATION_INTERVAL_DAYS']
    )

    return jsonify({
        'isEligible': is_eligible,
        'reasons': reasons,
        'nextEligibleDate': next_eligible_date.isoformat() if next_eligible_date else None,
    })
