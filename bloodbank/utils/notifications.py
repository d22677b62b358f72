from bloodbank import db
from bloodbank.models.notification import Notification
from bloodbank.models.user import User
from bloodbank.utils.email import send_email
from bloodbank.utils.sms import send_sms
import logging

# Configure logging
logger = logging.getLogger(__name__)


def _channel_copy(notification, delivery_method):
    copy = Notification(
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        notification_type=notification.notification_type,
        priority=notification.priority,
        delivery_method=delivery_method,
        related_entity_type=notification.related_entity_type,
        related_entity_id=notification.related_entity_id
    )
    db.session.add(copy)
    return copy


def send_email_notification(notification, user):
    """
    Mail a notification to the user and record the delivery
    """
    if not user.email:
        logger.error(f"User {user.id} has no email")
        return False

    email_notification = _channel_copy(notification, 'email')
    sent = send_email(notification.title, [user.email], notification.message)
    if sent:
        email_notification.mark_as_sent()
        logger.info(f"Email notification '{notification.title}' sent to {user.email}")
    return sent


def send_sms_notification(notification, user):
    """
    Text a notification to the user and record the delivery
    """
    if not user.phone:
        logger.error(f"User {user.id} has no phone number")
        return False

    sms_notification = _channel_copy(notification, 'sms')
    sent, result = send_sms(user.phone, f"{notification.title}: {notification.message}")
    if sent:
        sms_notification.mark_as_sent()
        logger.info(f"SMS notification '{notification.title}' sent to user {user.id}, SID: {result}")
    return sent


def send_notification(user, title, message, notification_type='general', priority='medium',
                      delivery_methods=None, related_entity_type=None, related_entity_id=None):
    """
    Create and send a notification to a user through specified delivery methods

    Args:
        user: User to notify
        title: Title of the notification
        message: Content of the notification
        notification_type: donation_drive, blood_request, inventory_low or general
        priority: low, medium or high
        delivery_methods: List of methods to deliver the notification (system, email, sms)
                         If None, high priority notifications follow the user's preferences
                         and everything else stays in-app
        related_entity_type: Type of related entity (e.g., blood_request)
        related_entity_id: ID of the related entity

    Returns:
        The in-app Notification, added to the session but not committed
    """
    if delivery_methods is None:
        delivery_methods = ["system"]  # System notification is always sent
        if priority == 'high':
            if user.email and user.email_notifications:
                delivery_methods.append("email")
            if user.phone and user.sms_notifications:
                delivery_methods.append("sms")

    notification = Notification(
        user_id=user.id,
        title=title,
        message=message,
        notification_type=notification_type,
        priority=priority,
        delivery_method="system",
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id
    )
    notification.mark_as_sent()  # System notifications are considered sent immediately
    db.session.add(notification)

    if "email" in delivery_methods:
        send_email_notification(notification, user)

    if "sms" in delivery_methods:
        send_sms_notification(notification, user)

    return notification


def notify_users(users, title, message, **kwargs):
    """
    Send the same notification to several users, returning how many were created
    """
    count = 0
    for user in users:
        send_notification(user, title, message, **kwargs)
        count += 1
    return count


def notify_role(role, title, message, **kwargs):
    return notify_users(User.query.filter_by(role=role).all(), title, message, **kwargs)
