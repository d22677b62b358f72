from bloodbank import db
from datetime import datetime

NOTIFICATION_TYPES = ['donation_drive', 'blood_request', 'inventory_low', 'general']
PRIORITIES = ['low', 'medium', 'high']


class Notification(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(100), nullable=False, default='Notification')
    message = db.Column(db.Text, nullable=False)
    notification_type = db.Column(db.String(50), nullable=False, default='general')  # donation_drive, blood_request, inventory_low, general
    priority = db.Column(db.String(10), nullable=False, default='medium')  # low, medium, high
    delivery_method = db.Column(db.String(20), nullable=False, default='system')  # sms, email, system
    is_sent = db.Column(db.Boolean, default=False)
    is_read = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)
    related_entity_type = db.Column(db.String(50), nullable=True)  # blood_request, drive, user, etc.
    related_entity_id = db.Column(db.Integer, nullable=True)

    def __repr__(self):
        return f"Notification('{self.title}', '{self.notification_type}', '{self.is_sent}', '{self.created_at}')"

    def mark_as_read(self):
        self.is_read = True

    def mark_as_sent(self):
        self.is_sent = True
        self.sent_at = datetime.utcnow()

    def to_dict(self):
        return {
            '_id': str(self.id),
            'id': str(self.id),
            'userId': str(self.user_id),
            'title': self.title,
            'message': self.message,
            'type': self.notification_type,
            'isRead': bool(self.is_read),
            'priority': self.priority,
            'relatedEntity': {
                'type': self.related_entity_type,
                'id': str(self.related_entity_id),
            } if self.related_entity_type else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
