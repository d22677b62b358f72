from flask import current_app
from flask_mail import Message
from bloodbank import mail
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

RESET_TOKEN_MAX_AGE = 1800


def send_email(subject, recipients, body):
    """
    Send a plain-text email, returning True when it was handed to the mail server
    """
    msg = Message(subject,
                  recipients=recipients,
                  sender=current_app.config.get('MAIL_DEFAULT_SENDER'))
    msg.body = body
    try:
        mail.send(msg)
    except Exception as e:
        current_app.logger.error(f"Error sending email '{subject}' to {recipients}: {str(e)}")
        return False
    return True


def send_reset_email(user):
    """
    Send password reset email to user
    """
    token = generate_reset_token(user.email)
    body = f'''To reset your password, send your new password with this token to /api/auth/reset-password/<token>:

{token}

The token expires in {RESET_TOKEN_MAX_AGE // 60} minutes.
If you did not make this request, simply ignore this email and no changes will be made.
'''
    return send_email('Password Reset Request', [user.email], body)


def generate_reset_token(email):
    """
    Generate a secure token for password reset
    """
    serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'])
    return serializer.dumps(email, salt=current_app.config['SECURITY_PASSWORD_SALT'])


def verify_reset_token(token, expires_sec=RESET_TOKEN_MAX_AGE):
    """
    Verify the reset token, returning the email it was issued for
    """
    serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'])
    try:
        email = serializer.loads(
            token,
            salt=current_app.config['SECURITY_PASSWORD_SALT'],
            max_age=expires_sec
        )
    except (BadSignature, SignatureExpired):
        return None
    return email
