from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_current_user

from lms.services import access, progress
from lms.utils.auth import optional_principal

bp = Blueprint("lessons", __name__)


# Free lessons are decided before any token is looked at
@bp.route("/<int:lesson_id>/access", methods=["GET"])
def check_access(lesson_id):
    return jsonify(access.check_lesson_access(lesson_id, optional_principal)), 200


@bp.route("/<int:lesson_id>/complete", methods=["POST"])
@jwt_required()
def mark_complete(lesson_id):
    record = progress.mark_lesson_complete(get_current_user(), lesson_id)
    return jsonify({**record.to_dict(), "message": "Lesson marked as completed"}), 200
