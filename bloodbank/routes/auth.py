from flask import Blueprint, jsonify, current_app, abort
from flask_login import current_user, login_required
from bloodbank import db
from bloodbank.models.user import User
from bloodbank.forms.auth_forms import (
    RegistrationForm, LoginForm, ProfileForm, ResetPasswordRequestForm, ResetPasswordForm
)
from bloodbank.forms.base import merge_payload
from bloodbank.utils.api import json_body, validation_error
from bloodbank.utils.email import send_reset_email, verify_reset_token
from bloodbank.utils.notifications import notify_role

auth = Blueprint('auth', __name__)


def auth_response(user, message, status=200):
    return jsonify({
        'message': message,
        'token': user.generate_auth_token(),
        'user': user.to_dict()
    }), status


@auth.route('/register', methods=['POST'])
def register():
    form = RegistrationForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    user = User(
        name=form.name.data.strip(),
        email=form.email.data.strip().lower(),
        role=form.role.data,
        phone=form.phone.data,
        is_verified=form.role.data != 'hospital'
    )
    user.set_password(form.password.data)

    if user.is_patient():
        user.blood_group = form.blood_group.data or None
    else:
        user.hospital_type = form.hospital_type.data or None
        user.hospital_license = form.hospital_license.data

    try:
        db.session.add(user)
        db.session.flush()  # Flush to get the user ID

        if user.is_hospital():
            notify_role('admin', 'Hospital awaiting verification',
                        f"{user.name} registered with license {user.hospital_license} and needs verification.",
                        related_entity_type='user', related_entity_id=user.id)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering user {form.email.data}: {str(e)}")
        abort(500, description='Registration failed. Please try again.')

    current_app.logger.info(f"Registered {user.role} account {user.email}")
    return auth_response(user, 'Registration successful', 201)


@auth.route('/login', methods=['POST'])
def login():
    form = LoginForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not user.check_password(form.password.data):
        current_app.logger.info(f"Failed login for {form.email.data}")
        abort(401, description='Invalid email or password')

    return auth_response(user, 'Login successful')


@auth.route('/profile', methods=['GET'])
@login_required
def get_profile():
    return jsonify(current_user.to_dict())


@auth.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    form = ProfileForm.from_json(merge_payload(current_user.to_dict(), json_body()))
    if not form.validate():
        return validation_error(form)

    user = current_user._get_current_object()
    user.name = form.name.data.strip()
    user.phone = form.phone.data or None
    user.street = form.address.form.street.data or None
    user.city = form.address.form.city.data or None
    user.state = form.address.form.state.data or None
    user.zip_code = form.address.form.zip_code.data or None
    user.email_notifications = form.email_notifications.data
    user.sms_notifications = form.sms_notifications.data

    if user.is_patient():
        user.blood_group = form.blood_group.data or None
        user.date_of_birth = form.date_of_birth.data
        user.medical_history = form.medical_history.data or None
        user.emergency_contact_name = form.emergency_contact.form.name.data or None
        user.emergency_contact_phone = form.emergency_contact.form.phone.data or None
        user.emergency_contact_relation = form.emergency_contact.form.relation.data or None

    if user.is_hospital():
        user.hospital_type = form.hospital_type.data or None
        user.capacity = form.capacity.data
        user.specializations = [s.strip() for s in form.specializations.data if s and s.strip()]

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating profile of user {user.id}: {str(e)}")
        abort(500, description='Failed to update profile')

    return jsonify({'message': 'Profile updated successfully', 'user': user.to_dict()})


@auth.route('/forgot-password', methods=['POST'])
def forgot_password():
    form = ResetPasswordRequestForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if user:
        send_reset_email(user)
        current_app.logger.info(f"Password reset requested for user {user.id}")

    # Same answer whether or not the account exists
    return jsonify({'message': 'If that email is registered, a password reset link has been sent.'})


@auth.route('/reset-password/<token>', methods=['POST'])
def reset_password(token):
    email = verify_reset_token(token)
    user = User.query.filter_by(email=email).first() if email else None
    if user is None:
        abort(400, description='That is an invalid or expired token')

    form = ResetPasswordForm.from_json(json_body())
    if not form.validate():
        return validation_error(form)

    user.set_password(form.password.data)
    db.session.commit()
    current_app.logger.info(f"Password reset for user {user.id}")
    return jsonify({'message': 'Your password has been updated! You can now log in.'})
