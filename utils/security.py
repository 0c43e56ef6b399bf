from functools import wraps
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask import jsonify
from extensions import db
from models.user import User
import logging

logger = logging.getLogger(__name__)


def current_user():
    """Return the User behind the JWT of the current request, or None."""
    identity = get_jwt_identity()
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def login_required(f):
    """
    Décorateur Flask: vérifie le JWT et injecte l'utilisateur courant.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = current_user()
        if not user:
            return jsonify({"msg": "User not found"}), 404
        return f(user, *args, **kwargs)
    return decorated_function


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = current_user()
        if not user:
            return jsonify({"msg": "User not found"}), 404
        if not user.is_admin():
            logger.warning(f"Admin access refused for user_id={user.id} role={user.role}")
            return jsonify({"error": "Forbidden", "code": "FORBIDDEN"}), 403
        return f(user, *args, **kwargs)
    return decorated_function
