from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_current_user

from lms.errors import ValidationError
from lms.services import progress

bp = Blueprint("progress", __name__)


# Submit or update lesson progress
@bp.route("/", methods=["POST"])
@jwt_required()
def update_progress():
    data = request.get_json() or {}
    lesson_id = data.get("lesson_id")

    if lesson_id is None:
        raise ValidationError("Missing lesson_id")
    if isinstance(lesson_id, bool) or not isinstance(lesson_id, int):
        raise ValidationError("lesson_id must be an integer")

    record = progress.record_progress(
        get_current_user(),
        lesson_id,
        watched_duration=data.get("watched_duration"),
        last_position=data.get("last_position"),
        is_completed=data.get("is_completed"),
    )
    return jsonify(record.to_dict()), 200


@bp.route("/", methods=["GET"])
@jwt_required()
def course_progress():
    course_id = request.args.get("course_id", type=int)
    if not course_id:
        raise ValidationError("Course ID is required")

    return jsonify(progress.get_course_progress(get_current_user(), course_id)), 200


@bp.route("/lessons/<int:lesson_id>", methods=["GET"])
@jwt_required()
def lesson_progress(lesson_id):
    record = progress.get_lesson_progress(get_current_user(), lesson_id)
    return jsonify(record.to_dict() if record else None), 200
