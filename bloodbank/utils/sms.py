from twilio.rest import Client
from flask import current_app


def format_phone_number(phone_number):
    """
    Ensure the number carries a country code, defaulting to India (+91)
    """
    phone_number = phone_number.strip().replace(' ', '')
    if not phone_number.startswith('+'):
        phone_number = '+91' + phone_number.lstrip('0')
    return phone_number


def sms_configured():
    return all([
        current_app.config.get('TWILIO_ACCOUNT_SID'),
        current_app.config.get('TWILIO_AUTH_TOKEN'),
        current_app.config.get('TWILIO_PHONE_NUMBER'),
    ])


def send_sms(to_number, message):
    """
    Send SMS using Twilio API
    """
    if not sms_configured():
        current_app.logger.warning("Twilio credentials not configured, skipping SMS")
        return False, "Twilio credentials not configured"

    to_number = format_phone_number(to_number)
    try:
        client = Client(current_app.config['TWILIO_ACCOUNT_SID'], current_app.config['TWILIO_AUTH_TOKEN'])

        result = client.messages.create(
            body=message,
            from_=current_app.config['TWILIO_PHONE_NUMBER'],
            to=to_number
        )

        current_app.logger.info(f"SMS sent to {to_number}. Message SID: {result.sid}")
        return True, result.sid

    except Exception as e:
        current_app.logger.error(f"Error sending SMS to {to_number}: {str(e)}")
        return False, str(e)
