from wtforms import Form, StringField, PasswordField, BooleanField, SelectField, IntegerField, TextAreaField, DateField, FormField, FieldList
from wtforms.validators import DataRequired, Length, Email, ValidationError, NumberRange, Optional
from bloodbank.forms.base import ApiForm, DATE_FORMATS, OPTIONAL_BLOOD_GROUP_CHOICES
from bloodbank.models.user import User
from datetime import date


class AddressForm(Form):
    street = StringField('Street', validators=[Optional(), Length(max=200)])
    city = StringField('City', validators=[Optional(), Length(max=100)])
    state = StringField('State', validators=[Optional(), Length(max=100)])
    zip_code = StringField('Zip Code', validators=[Optional(), Length(max=20)])


class EmergencyContactForm(Form):
    name = StringField('Name', validators=[Optional(), Length(max=100)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    relation = StringField('Relation', validators=[Optional(), Length(max=50)])


class RegistrationForm(ApiForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(min=2, max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=6, max=128)])
    role = SelectField('Register as', choices=[('patient', 'Patient'), ('hospital', 'Hospital')], validators=[DataRequired()])
    phone = StringField('Phone Number', validators=[DataRequired(), Length(min=7, max=20)])
    blood_group = SelectField('Blood Group', choices=OPTIONAL_BLOOD_GROUP_CHOICES, validators=[Optional()])
    hospital_type = SelectField('Hospital Type',
                                choices=[('', 'Not specified'), ('government', 'Government'),
                                         ('private', 'Private'), ('charitable', 'Charitable')],
                                validators=[Optional()])
    hospital_license = StringField('License Number', validators=[Optional(), Length(min=5, max=50)])

    def validate_email(self, email):
        user = User.query.filter_by(email=email.data.lower()).first()
        if user:
            raise ValidationError('That email is already registered. Please choose a different one or login.')

    def validate_hospital_license(self, hospital_license):
        if User.query.filter_by(hospital_license=hospital_license.data).first():
            raise ValidationError('That license number is already registered.')

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if self.role.data == 'hospital' and not self.hospital_license.data:
            self.hospital_license.errors.append('A license number is required for hospitals.')
            return False
        return True


class LoginForm(ApiForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])


class ProfileForm(ApiForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(min=2, max=100)])
    phone = StringField('Phone Number', validators=[Optional(), Length(min=7, max=20)])
    address = FormField(AddressForm)
    blood_group = SelectField('Blood Group', choices=OPTIONAL_BLOOD_GROUP_CHOICES, validators=[Optional()])
    date_of_birth = DateField('Date of Birth', format=DATE_FORMATS, validators=[Optional()])
    medical_history = TextAreaField('Medical History', validators=[Optional(), Length(max=2000)])
    emergency_contact = FormField(EmergencyContactForm)
    hospital_type = SelectField('Hospital Type',
                                choices=[('', 'Not specified'), ('government', 'Government'),
                                         ('private', 'Private'), ('charitable', 'Charitable')],
                                validators=[Optional()])
    capacity = IntegerField('Capacity', validators=[Optional(), NumberRange(min=0)])
    specializations = FieldList(StringField('Specialization', validators=[Length(max=100)]))
    email_notifications = BooleanField('Email Notifications')
    sms_notifications = BooleanField('SMS Notifications')

    def validate_date_of_birth(self, date_of_birth):
        if date_of_birth.data and date_of_birth.data > date.today():
            raise ValidationError('Date of birth cannot be in the future.')


class ResetPasswordRequestForm(ApiForm):
    email = StringField('Email', validators=[DataRequired(), Email()])


class ResetPasswordForm(ApiForm):
    password = PasswordField('New Password', validators=[DataRequired(), Length(min=6, max=128)])
