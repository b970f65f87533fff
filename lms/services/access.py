"""Lesson visibility and course enrollment."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from lms.errors import Conflict, NotFound, ValidationError
from lms.extensions import db
from lms.models import Course, Enrollment, Lesson


def get_enrollment(user_id, course_id):
    return Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()


def check_lesson_access(lesson_id, resolve_principal):
    """Decide whether the caller may view a lesson.

    ``resolve_principal`` is only called once the lesson turns out not to be
    free, so anonymous visitors (or stale tokens) never block free content.
    """
    lesson = db.session.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")

    if lesson.has_free_access:
        return {"has_access": True, "reason": "free"}

    principal = resolve_principal()
    if principal is None:
        return {"has_access": False, "reason": "not_authenticated"}

    if get_enrollment(principal.id, lesson.module.course_id) is None:
        return {"has_access": False, "reason": "not_enrolled"}

    return {"has_access": True, "reason": "enrolled"}


def enroll(course_id, principal):
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found")

    if not course.is_published:
        raise ValidationError("Course is not available for enrollment")

    if get_enrollment(principal.id, course.id) is not None:
        raise Conflict("Already enrolled in this course")

    enrollment = Enrollment(user_id=principal.id, course_id=course.id, status="ACTIVE", progress=0)
    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent enrollment for the same pair
        db.session.rollback()
        raise Conflict("Already enrolled in this course")

    current_app.logger.info(f"User {principal.id} enrolled in course {course.id}")
    return enrollment


def list_enrollments(user_id):
    return (
        Enrollment.query.filter_by(user_id=user_id)
        .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        .all()
    )
