from functools import wraps
from flask import abort
from flask_login import current_user


def roles_required(*roles):
    """
    Restrict a view to authenticated users holding one of the given roles
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401, description='Authentication required')
            if current_user.role not in roles:
                abort(403, description='You do not have permission to perform this action')
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = roles_required('admin')
