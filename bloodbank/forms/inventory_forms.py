from wtforms import Form, StringField, IntegerField, SelectField, DateField, FormField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, ValidationError
from bloodbank.forms.base import ApiForm, DATE_FORMATS, BLOOD_GROUP_CHOICES
from bloodbank.models.donor import Donor
from bloodbank import db
from datetime import date

TEST_RESULT_CHOICES = [('negative', 'Negative'), ('positive', 'Positive')]


class TestResultsForm(Form):
    hiv = SelectField('HIV', choices=TEST_RESULT_CHOICES, default='negative')
    hepatitis_b = SelectField('Hepatitis B', choices=TEST_RESULT_CHOICES, default='negative')
    hepatitis_c = SelectField('Hepatitis C', choices=TEST_RESULT_CHOICES, default='negative')
    syphilis = SelectField('Syphilis', choices=TEST_RESULT_CHOICES, default='negative')


class InventoryForm(ApiForm):
    blood_group = SelectField('Blood Group', choices=BLOOD_GROUP_CHOICES, validators=[DataRequired()])
    units_available = IntegerField('Units Available', validators=[InputRequired(), NumberRange(min=0, max=1000)])
    units_reserved = IntegerField('Units Reserved', validators=[Optional(), NumberRange(min=0, max=1000)], default=0)
    collection_date = DateField('Collection Date', format=DATE_FORMATS, validators=[Optional()])
    expiry_date = DateField('Expiry Date', format=DATE_FORMATS, validators=[DataRequired()])
    blood_bank_location = StringField('Blood Bank Location', validators=[Optional(), Length(max=100)])
    donor_id = IntegerField('Donor', validators=[Optional()])
    status = SelectField('Status',
                         choices=[('available', 'Available'), ('reserved', 'Reserved'),
                                  ('expired', 'Expired'), ('used', 'Used')],
                         default='available')
    test_results = FormField(TestResultsForm)

    def validate_collection_date(self, collection_date):
        if collection_date.data and collection_date.data > date.today():
            raise ValidationError('Collection date cannot be in the future.')

    def validate_expiry_date(self, expiry_date):
        collected = self.collection_date.data or date.today()
        if expiry_date.data <= collected:
            raise ValidationError('Expiry date must be after the collection date.')

    def validate_donor_id(self, donor_id):
        if donor_id.data is not None and db.session.get(Donor, donor_id.data) is None:
            raise ValidationError('Donor not found.')
