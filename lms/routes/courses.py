import re

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_current_user
from sqlalchemy.exc import IntegrityError

from lms.errors import Conflict, NotFound, ValidationError
from lms.extensions import db
from lms.models import Course, Module, Lesson
from lms.models.course import COURSE_STATUSES
from lms.models.user import AUTHOR_ROLES
from lms.services import access
from lms.utils.auth import role_required

bp = Blueprint("courses", __name__)


def slugify(text):
    text = re.sub(r'[^a-zA-Z0-9]+', '-', text)
    return text.strip('-').lower()


def _text(data, field, required=False):
    """A stripped string field from the request body, or None when absent."""
    value = data.get(field)
    if value is None:
        if required:
            raise ValidationError(f"Missing {field}")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"Missing {field}")
    return value


def _position(data, default):
    value = data.get("order")
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("order must be a positive integer")
    return value


def _get_course(course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found")
    return course


# List all published courses
@bp.route("/", methods=["GET"])
def list_courses():
    courses = Course.query.filter_by(status="PUBLISHED").order_by(Course.created_at.desc()).all()
    return jsonify([c.to_dict() for c in courses]), 200


@bp.route("/slug/<slug>", methods=["GET"])
def get_course_by_slug(slug):
    course = Course.query.filter_by(slug=slug).first()
    if course is None or not course.is_published:
        raise NotFound("Course not found")
    return jsonify(course.to_dict(outline=True)), 200


@bp.route("/", methods=["POST"])
@role_required(*AUTHOR_ROLES)
def create_course():
    data = request.get_json() or {}
    title = _text(data, "title", required=True)

    status = data.get("status", "DRAFT")
    if status not in COURSE_STATUSES:
        raise ValidationError("Invalid course status")

    course = Course(
        title=title,
        slug=_text(data, "slug") or slugify(title),
        description=_text(data, "description"),
        is_free=bool(data.get("is_free", False)),
        status=status,
        author_id=get_current_user().id,
    )
    db.session.add(course)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("A course with this slug already exists")

    return jsonify(course.to_dict()), 201


@bp.route("/<int:course_id>", methods=["PATCH"])
@role_required(*AUTHOR_ROLES)
def update_course(course_id):
    course = _get_course(course_id)
    data = request.get_json() or {}

    if "status" in data:
        if data["status"] not in COURSE_STATUSES:
            raise ValidationError("Invalid course status")
        course.status = data["status"]
    if "title" in data:
        course.title = _text(data, "title", required=True)
    if "description" in data:
        course.description = _text(data, "description")
    if "is_free" in data:
        course.is_free = bool(data["is_free"])

    db.session.commit()
    return jsonify(course.to_dict()), 200


@bp.route("/<int:course_id>/modules", methods=["POST"])
@role_required(*AUTHOR_ROLES)
def create_module(course_id):
    course = _get_course(course_id)
    data = request.get_json() or {}
    title = _text(data, "title", required=True)
    order = _position(data, len(course.modules) + 1)

    module = Module(course_id=course.id, title=title, order=order)
    db.session.add(module)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(f"Module order {order} is already used in this course")

    return jsonify(module.to_dict()), 201


@bp.route("/modules/<int:module_id>/lessons", methods=["POST"])
@role_required(*AUTHOR_ROLES)
def create_lesson(module_id):
    module = db.session.get(Module, module_id)
    if module is None:
        raise NotFound("Module not found")

    data = request.get_json() or {}
    title = _text(data, "title", required=True)

    duration = data.get("duration")
    if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int) or duration < 0):
        raise ValidationError("duration must be a non-negative number of minutes")

    lesson = Lesson(
        module_id=module.id,
        title=title,
        order=_position(data, len(module.lessons) + 1),
        duration=duration,
        is_free=bool(data.get("is_free", False)),
        video_url=data.get("video_url"),
    )
    db.session.add(lesson)
    db.session.commit()
    return jsonify(lesson.to_dict()), 201


@bp.route("/<int:course_id>/enroll", methods=["POST"])
@jwt_required()
def enroll_course(course_id):
    enrollment = access.enroll(course_id, get_current_user())
    return jsonify(enrollment.to_dict()), 201


@bp.route("/<int:course_id>/enrollment", methods=["GET"])
@jwt_required()
def get_enrollment(course_id):
    _get_course(course_id)
    enrollment = access.get_enrollment(get_current_user().id, course_id)
    if enrollment is None:
        raise NotFound("Not enrolled in this course")
    return jsonify(enrollment.to_dict()), 200
