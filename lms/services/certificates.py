"""Course completion aggregation and certificate issuance."""
from datetime import datetime

from flask import current_app, render_template
from sqlalchemy.exc import IntegrityError

from lms.errors import NotFound
from lms.extensions import db
from lms.models import Certificate, Course, Enrollment, Lesson, LessonProgress, Module
from lms.utils.mailer import send_email


def calculate_percentage(total_lessons, completed_lessons):
    """Whole percentage rounded half up; an empty course is 0 %."""
    if total_lessons <= 0:
        return 0
    return (200 * completed_lessons + total_lessons) // (2 * total_lessons)


def count_course_lessons(course_id):
    return Lesson.query.join(Module, Lesson.module_id == Module.id).filter(Module.course_id == course_id).count()


def count_completed_lessons(user_id, course_id):
    return (
        LessonProgress.query.join(Lesson, LessonProgress.lesson_id == Lesson.id)
        .join(Module, Lesson.module_id == Module.id)
        .filter(
            LessonProgress.user_id == user_id,
            LessonProgress.is_completed.is_(True),
            Module.course_id == course_id,
        )
        .count()
    )


def recompute_course_progress(user_id, course_id):
    total_lessons = count_course_lessons(course_id)
    completed_lessons = count_completed_lessons(user_id, course_id)
    percentage = calculate_percentage(total_lessons, completed_lessons)

    enrollment = Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()
    if enrollment is None:
        raise NotFound("Enrollment not found")

    enrollment.progress = percentage
    if percentage == 100:
        enrollment.status = "COMPLETED"
        # keep the first completion time on re-runs
        if enrollment.completed_at is None:
            enrollment.completed_at = datetime.utcnow()
    db.session.commit()

    current_app.logger.info(
        f"Course {course_id} progress for user {user_id}: {completed_lessons}/{total_lessons} ({percentage}%)"
    )

    if percentage == 100:
        issue_certificate_if_absent(user_id, course_id)

    return enrollment


def get_certificate(user_id, course_id):
    return Certificate.query.filter_by(user_id=user_id, course_id=course_id).first()


def issue_certificate_if_absent(user_id, course_id):
    certificate = get_certificate(user_id, course_id)
    if certificate is not None:
        return certificate

    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found")

    certificate = Certificate(
        user_id=user_id,
        course_id=course_id,
        course_title=course.title,
        issue_date=datetime.utcnow(),
        pdf_url=None,
    )
    db.session.add(certificate)
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent request issued it first; the unique constraint is the real guard
        db.session.rollback()
        current_app.logger.info(f"Certificate for user {user_id} course {course_id} was already issued")
        return get_certificate(user_id, course_id)

    current_app.logger.info(f"Issued certificate {certificate.id} to user {user_id} for course {course_id}")
    notify_certificate_issued(certificate)
    return certificate


def notify_certificate_issued(certificate):
    if not current_app.config.get("CERTIFICATE_EMAILS_ENABLED"):
        return

    student = certificate.student
    try:
        send_email(
            to=student.email,
            subject=f"Your certificate for {certificate.course_title}",
            body=render_template("emails/certificate_issued.txt", student=student, certificate=certificate),
            html=render_template("emails/certificate_issued.html", student=student, certificate=certificate),
        )
    except Exception as e:
        # the certificate stands even if the notification cannot be delivered
        current_app.logger.error(f"Error sending certificate email for certificate {certificate.id}: {e}")


def list_certificates(user_id):
    return Certificate.query.filter_by(user_id=user_id).order_by(Certificate.issue_date.desc()).all()


def render_certificate_pdf(certificate):
    from weasyprint import HTML

    html = render_template(
        "certificate.html",
        name=certificate.student.full_name,
        course=certificate.course_title,
        certificate_number=f"LMS-{certificate.id:06d}",
        date=certificate.issue_date.strftime("%B %d, %Y"),
    )
    return HTML(string=html).write_pdf()
