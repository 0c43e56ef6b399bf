# routes/auth_routes.py

from flask import Blueprint, request, jsonify
from sqlalchemy import func
from models.user import User
from flask_jwt_extended import create_access_token

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        if request.form:
            data = request.form.to_dict()
        else:
            return jsonify({"error": "JSON payload expected"}), 400

    email = (data.get("email") or "").strip()
    password = data.get("password") or ""

    user = User.query.filter(func.lower(User.email) == email.lower()).first() if email else None
    if user and user.status == "active" and user.check_password(password):
        additional_claims = {"role": user.role.upper()}
        access_token = create_access_token(identity=str(user.id), additional_claims=additional_claims)
        return jsonify({
            "access_token": access_token,
            "user": user.to_dict()
        }), 200
    else:
        return jsonify({"msg": "Invalid credentials"}), 401
