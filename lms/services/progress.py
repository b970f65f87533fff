"""Per-lesson progress and the course progress summary."""
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from lms.errors import Forbidden, NotFound, ProgressAggregationError, ValidationError
from lms.extensions import db
from lms.models import Course, Lesson, LessonProgress
from lms.services.access import get_enrollment
from lms.services.certificates import calculate_percentage, recompute_course_progress
from lms.utils.db import upsert


def _validate_counter(name, value):
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer")


def record_progress(principal, lesson_id, watched_duration=None, last_position=None, is_completed=None):
    """Save what the principal watched of a lesson.

    Only the fields that are given are written. When the stored row ends up
    completed, the course progress (and certificate) is recomputed before
    returning.
    """
    _validate_counter("watched_duration", watched_duration)
    _validate_counter("last_position", last_position)
    if is_completed is not None and not isinstance(is_completed, bool):
        raise ValidationError("is_completed must be a boolean")

    lesson = db.session.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")

    course_id = lesson.module.course_id
    if get_enrollment(principal.id, course_id) is None:
        current_app.logger.warning(f"User {principal.id} sent progress for lesson {lesson_id} without enrollment")
        raise Forbidden("Not enrolled in this course")

    now = datetime.utcnow()
    changes = {"updated_at": now}
    if watched_duration is not None:
        changes["watched_duration"] = watched_duration
    if last_position is not None:
        changes["last_position"] = last_position
    if is_completed is not None:
        changes["is_completed"] = is_completed
        changes["completed_at"] = now if is_completed else None

    values = {
        "user_id": principal.id,
        "lesson_id": lesson.id,
        "is_completed": False,
        "watched_duration": 0,
        "last_position": 0,
        "completed_at": None,
        "created_at": now,
    }
    values.update(changes)

    upsert(LessonProgress, ["user_id", "lesson_id"], values, changes)
    db.session.commit()

    progress = get_lesson_progress(principal, lesson.id)
    current_app.logger.info(
        f"Saved progress for user {principal.id} lesson {lesson.id} (completed={progress.is_completed})"
    )

    if progress.is_completed:
        try:
            recompute_course_progress(principal.id, course_id)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(
                f"Course progress recomputation failed for user {principal.id} course {course_id}"
            )
            raise ProgressAggregationError(progress.to_dict())

    return progress


def mark_lesson_complete(principal, lesson_id):
    lesson = db.session.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")

    return record_progress(
        principal,
        lesson_id,
        watched_duration=lesson.duration or 0,
        is_completed=True,
    )


def get_lesson_progress(principal, lesson_id):
    return LessonProgress.query.filter_by(user_id=principal.id, lesson_id=lesson_id).first()


def get_course_progress(principal, course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found")

    lessons = [lesson for module in course.modules for lesson in module.lessons]
    rows = {
        row.lesson_id: row
        for row in LessonProgress.query.filter(
            LessonProgress.user_id == principal.id,
            LessonProgress.lesson_id.in_([lesson.id for lesson in lessons]),
        )
    } if lessons else {}

    per_lesson = []
    completed = 0
    for lesson in lessons:
        row = rows.get(lesson.id)
        is_completed = bool(row and row.is_completed)
        completed += is_completed
        per_lesson.append({
            "id": lesson.id,
            "title": lesson.title,
            "module_id": lesson.module_id,
            "is_completed": is_completed,
            "watched_duration": row.watched_duration if row else 0,
            "last_position": row.last_position if row else 0,
        })

    return {
        "course_id": course.id,
        "total_lessons": len(lessons),
        "completed_lessons": completed,
        "percentage": calculate_percentage(len(lessons), completed),
        "lessons": per_lesson,
    }
