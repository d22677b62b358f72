from wtforms import StringField, IntegerField, SelectField, TextAreaField, DateField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, ValidationError
from bloodbank.forms.base import ApiForm, DATE_FORMATS, BLOOD_GROUP_CHOICES
from bloodbank.models.user import User
from bloodbank import db
from datetime import date

URGENCY_CHOICES = [('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')]
STATUS_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('fulfilled', 'Fulfilled'),
                  ('rejected', 'Rejected'), ('cancelled', 'Cancelled')]


class BloodRequestForm(ApiForm):
    blood_group = SelectField('Blood Group Needed', choices=BLOOD_GROUP_CHOICES, validators=[DataRequired()])
    units_needed = IntegerField('Units Required', validators=[DataRequired(), NumberRange(min=1, max=20)], default=1)
    urgency = SelectField('Urgency Level', choices=URGENCY_CHOICES, validators=[DataRequired()], default='medium')
    patient_name = StringField('Patient Name', validators=[DataRequired(), Length(min=2, max=100)])
    patient_age = IntegerField('Patient Age', validators=[InputRequired(), NumberRange(min=0, max=120)])
    reason = TextAreaField('Reason', validators=[Optional(), Length(max=500)])
    required_by = DateField('Required By', format=DATE_FORMATS, validators=[DataRequired()])
    hospital_id = StringField('Hospital', validators=[Optional()])

    def validate_required_by(self, required_by):
        if required_by.data < date.today():
            raise ValidationError('Required-by date cannot be in the past.')

    def validate_hospital_id(self, hospital_id):
        try:
            hospital = db.session.get(User, int(hospital_id.data))
        except ValueError:
            hospital = None
        if hospital is None or not hospital.is_hospital():
            raise ValidationError('Hospital not found.')


class RequestStatusForm(ApiForm):
    status = SelectField('Status', choices=STATUS_CHOICES, validators=[DataRequired()])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=1000)])
