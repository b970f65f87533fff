from functools import wraps

from flask import current_app, jsonify
from flask_jwt_extended import get_current_user, verify_jwt_in_request

from lms.errors import Forbidden
from lms.extensions import db
from lms.models.user import User


def _unauthenticated(message):
    return jsonify({"error": message, "kind": "unauthenticated"}), 401


def register_jwt_callbacks(jwt):
    @jwt.user_identity_loader
    def user_identity_lookup(user):
        if isinstance(user, User):
            return str(user.id)
        return str(user)

    @jwt.user_lookup_loader
    def user_lookup_callback(_jwt_header, jwt_data):
        user = db.session.get(User, int(jwt_data["sub"]))
        if user is None or not user.is_active:
            return None
        return user

    @jwt.user_lookup_error_loader
    def user_lookup_error_callback(_jwt_header, jwt_data):
        current_app.logger.warning(f"Rejected token for missing or inactive user {jwt_data.get('sub')}")
        return _unauthenticated("Account is not active")

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        return _unauthenticated("Authorization token required")

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return _unauthenticated("Invalid token")

    @jwt.expired_token_loader
    def expired_token_callback(_jwt_header, _jwt_data):
        return _unauthenticated("Token expired")


def optional_principal():
    """Resolve the caller if a token was sent, otherwise return ``None``."""
    verify_jwt_in_request(optional=True)
    return get_current_user()


def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            verify_jwt_in_request()
            principal = get_current_user()
            if principal.role not in roles:
                current_app.logger.warning(
                    f"User {principal.id} with role {principal.role} denied access to {fn.__name__}"
                )
                raise Forbidden("Insufficient permissions")
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def is_owner_or_elevated(principal, owner_id):
    return principal.id == owner_id or principal.is_elevated
