from flask import request, jsonify, abort
from datetime import datetime

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def json_body():
    """
    The request's JSON object, or an empty dict for a missing/non-object body
    """
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def validation_error(form):
    return jsonify({'message': form.error_message, 'errors': form.errors}), 400


def paginate(query, serializer):
    """
    Paginate a query from the page/limit arguments into the list response shape
    """
    page = max(request.args.get('page', 1, type=int), 1)
    limit = request.args.get('limit', DEFAULT_PAGE_SIZE, type=int)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    pagination = query.paginate(page=page, per_page=limit, error_out=False)
    return {
        'data': [serializer(item) for item in pagination.items],
        'totalPages': pagination.pages,
        'currentPage': page,
        'total': pagination.total,
    }


def bool_arg(name):
    """
    Read a true/false query argument; None when absent
    """
    value = request.args.get(name)
    if value is None or value == '':
        return None
    return value.lower() in ('true', '1', 'yes')


def date_arg(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], '%Y-%m-%d').date()
    except ValueError:
        abort(400, description=f'{name} must be a date in YYYY-MM-DD format')
