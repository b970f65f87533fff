from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_current_user

from lms.services import access

bp = Blueprint("enrollments", __name__)


# List user's enrolled courses
@bp.route("/", methods=["GET"])
@jwt_required()
def list_enrollments():
    enrollments = access.list_enrollments(get_current_user().id)
    return jsonify([e.to_dict() for e in enrollments]), 200
