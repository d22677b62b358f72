from flask import Blueprint, jsonify, current_app, abort
from flask_login import login_required, current_user
from bloodbank import db
from bloodbank.models.notification import Notification
from bloodbank.utils.api import paginate, bool_arg

notifications = Blueprint('notifications', __name__)


def inbox(user):
    # Email and SMS rows are delivery copies of the in-app notification
    return Notification.query.filter_by(user_id=user.id, delivery_method='system')


@notifications.route('', methods=['GET'])
@login_required
def list_notifications():
    query = inbox(current_user)
    if bool_arg('unread'):
        query = query.filter(Notification.is_read.is_(False))

    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    result = paginate(query, Notification.to_dict)
    result['unreadCount'] = inbox(current_user).filter(Notification.is_read.is_(False)).count()
    return jsonify(result)


@notifications.route('/read-all', methods=['PUT'])
@login_required
def mark_all_read():
    unread = inbox(current_user).filter(Notification.is_read.is_(False)).all()
    for notification in unread:
        notification.mark_as_read()
    db.session.commit()

    current_app.logger.info(f"User {current_user.id} marked {len(unread)} notifications as read")
    return jsonify({'message': 'All notifications marked as read'})


@notifications.route('/<int:notification_id>/read', methods=['PUT'])
@login_required
def mark_read(notification_id):
    notification = db.get_or_404(Notification, notification_id, description='Notification not found')
    if notification.user_id != current_user.id:
        abort(403, description='You do not have access to this notification')

    notification.mark_as_read()
    db.session.commit()
    return jsonify({'message': 'Notification marked as read'})
