from wtforms import StringField, BooleanField, SelectField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, Optional, ValidationError
from bloodbank.forms.base import ApiForm
from bloodbank.models.user import User
from bloodbank import db


class VerifyHospitalForm(ApiForm):
    is_verified = BooleanField('Verified', validators=[InputRequired()])


class AdminNotificationForm(ApiForm):
    title = StringField('Title', validators=[DataRequired(), Length(min=3, max=100)])
    message = TextAreaField('Message', validators=[DataRequired(), Length(min=5, max=2000)])
    type = SelectField('Type',
                       choices=[('general', 'General'), ('donation_drive', 'Donation Drive'),
                                ('blood_request', 'Blood Request'), ('inventory_low', 'Inventory Low')],
                       default='general')
    priority = SelectField('Priority', choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium')
    user_id = StringField('Recipient', validators=[Optional()])
    role = SelectField('Recipient Role',
                       choices=[('', 'Everyone'), ('patient', 'Patients'), ('hospital', 'Hospitals'), ('admin', 'Admins')],
                       validators=[Optional()])

    def validate_user_id(self, user_id):
        try:
            user = db.session.get(User, int(user_id.data))
        except ValueError:
            user = None
        if user is None:
            raise ValidationError('User not found.')
