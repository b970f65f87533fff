from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_current_user

from lms.errors import Conflict, Forbidden, Unauthenticated, ValidationError
from lms.extensions import db
from lms.models import User

bp = Blueprint("auth", __name__)


@bp.route("/register", methods=["POST"])
def register():
    data = request.get_json() or {}
    if not all(isinstance(data.get(field, ""), str) for field in ("full_name", "email", "password")):
        raise ValidationError("full_name, email and password must be strings")

    full_name = (data.get("full_name") or "").strip().title()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")

    if not all([full_name, email, password]):
        raise ValidationError("Missing required fields")

    if User.query.filter_by(email=email).first():
        raise Conflict("Email already exists.")

    user = User(full_name=full_name, email=email, role="USER", status="ACTIVE")
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info(f"Registered user {user.id}")
    return jsonify(user.to_dict()), 201


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json() or {}
    if not all(isinstance(data.get(field, ""), str) for field in ("email", "password")):
        raise ValidationError("email and password must be strings")

    email = (data.get("email") or "").strip().lower()
    password = data.get("password")

    user = User.query.filter_by(email=email).first()
    if not user or not password or not user.check_password(password):
        raise Unauthenticated("Invalid credentials")

    if not user.is_active:
        raise Forbidden("Account is not active")

    access_token = create_access_token(identity=user, additional_claims={"role": user.role})
    return jsonify({"access_token": access_token, "user": user.to_dict()}), 200


@bp.route("/profile", methods=["GET"])
@jwt_required()
def profile():
    return jsonify(get_current_user().to_dict()), 200
