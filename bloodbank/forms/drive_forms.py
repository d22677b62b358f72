from wtforms import Form, StringField, IntegerField, SelectField, TextAreaField, DateField, TimeField, FormField, FieldList
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, ValidationError
from bloodbank.forms.base import ApiForm, DATE_FORMATS


class DriveLocationForm(Form):
    name = StringField('Venue', validators=[DataRequired(), Length(max=150)])
    address = StringField('Address', validators=[DataRequired(), Length(max=200)])
    city = StringField('City', validators=[DataRequired(), Length(max=100)])
    state = StringField('State', validators=[Optional(), Length(max=100)])
    zip_code = StringField('Zip Code', validators=[Optional(), Length(max=20)])


class ContactInfoForm(Form):
    name = StringField('Contact Name', validators=[Optional(), Length(max=100)])
    phone = StringField('Contact Phone', validators=[Optional(), Length(max=20)])
    email = StringField('Contact Email', validators=[Optional(), Email()])


class DriveForm(ApiForm):
    title = StringField('Title', validators=[DataRequired(), Length(min=3, max=150)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=2000)])
    location = FormField(DriveLocationForm)
    start_date = DateField('Start Date', format=DATE_FORMATS, validators=[DataRequired()])
    end_date = DateField('End Date', format=DATE_FORMATS, validators=[DataRequired()])
    start_time = TimeField('Start Time', validators=[DataRequired()])
    end_time = TimeField('End Time', validators=[DataRequired()])
    target_donors = IntegerField('Target Donors', validators=[DataRequired(), NumberRange(min=1, max=10000)], default=50)
    requirements = FieldList(StringField('Requirement', validators=[Length(max=200)]))
    contact_info = FormField(ContactInfoForm)
    status = SelectField('Status',
                         choices=[('upcoming', 'Upcoming'), ('ongoing', 'Ongoing'),
                                  ('completed', 'Completed'), ('cancelled', 'Cancelled')],
                         default='upcoming')
    completed_donations = IntegerField('Completed Donations', validators=[Optional(), NumberRange(min=0)])

    def validate_end_date(self, end_date):
        if self.start_date.data and end_date.data < self.start_date.data:
            raise ValidationError('End date cannot be before the start date.')

    def validate_end_time(self, end_time):
        if self.start_date.data and self.start_date.data == self.end_date.data \
                and self.start_time.data and end_time.data <= self.start_time.data:
            raise ValidationError('End time must be after the start time.')
