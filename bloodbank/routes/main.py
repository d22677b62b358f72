from flask import Blueprint, jsonify
from datetime import datetime

main = Blueprint('main', __name__)


@main.route('/health')
def health():
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.utcnow().isoformat()
    })
