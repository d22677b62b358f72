from wtforms import Form, StringField, SelectField, FloatField, TextAreaField, DateField, FormField
from wtforms.validators import DataRequired, Length, Email, NumberRange, Optional, ValidationError
from bloodbank.forms.auth_forms import AddressForm
from bloodbank.forms.base import ApiForm, DATE_FORMATS, BLOOD_GROUP_CHOICES
from datetime import date


class DonorEmergencyContactForm(Form):
    name = StringField('Name', validators=[Optional(), Length(max=100)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])


class DonorForm(ApiForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(min=2, max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    phone = StringField('Phone Number', validators=[DataRequired(), Length(min=7, max=20)])
    blood_group = SelectField('Blood Group', choices=BLOOD_GROUP_CHOICES, validators=[DataRequired()])
    date_of_birth = DateField('Date of Birth', format=DATE_FORMATS, validators=[DataRequired()])
    gender = SelectField('Gender', choices=[('male', 'Male'), ('female', 'Female'), ('other', 'Other')], validators=[DataRequired()])
    weight = FloatField('Weight (kg)', validators=[DataRequired(), NumberRange(min=1, max=300)])
    address = FormField(AddressForm)
    medical_history = TextAreaField('Medical History', validators=[Optional(), Length(max=2000)])
    last_donation_date = DateField('Last Donation Date', format=DATE_FORMATS, validators=[Optional()])
    emergency_contact = FormField(DonorEmergencyContactForm)

    def validate_date_of_birth(self, date_of_birth):
        if date_of_birth.data and date_of_birth.data >= date.today():
            raise ValidationError('Date of birth must be in the past.')

    def validate_last_donation_date(self, last_donation_date):
        if last_donation_date.data and last_donation_date.data > date.today():
            raise ValidationError('Last donation date cannot be in the future.')


class EligibilityCheckForm(ApiForm):
    date_of_birth = DateField('Date of Birth', format=DATE_FORMATS, validators=[Optional()])
    age = FloatField('Age', validators=[Optional(), NumberRange(min=0, max=130)])
    weight = FloatField('Weight (kg)', validators=[DataRequired(), NumberRange(min=1, max=300)])
    last_donation_date = DateField('Last Donation Date', format=DATE_FORMATS, validators=[Optional()])
    hemoglobin = FloatField('Hemoglobin (g/dL)', validators=[Optional(), NumberRange(min=0, max=25)])
    gender = SelectField('Gender', choices=[('', 'Not specified'), ('male', 'Male'), ('female', 'Female'), ('other', 'Other')],
                         validators=[Optional()])

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if self.age.data is None and self.date_of_birth.data is None:
            self.age.errors.append('Either age or date of birth is required.')
            return False
        return True
