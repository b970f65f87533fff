import pytest

from lms.errors import NotFound
from lms.extensions import db, mail
from lms.models import Certificate, Enrollment, LessonProgress
from lms.services import access, certificates


@pytest.mark.parametrize("total, completed, expected", [
    (0, 0, 0),
    (2, 1, 50),
    (3, 1, 33),
    (3, 2, 67),
    (8, 1, 13),  # 12.5 rounds up
    (8, 3, 38),  # 37.5 rounds up
    (4, 4, 100),
])
def test_calculate_percentage(total, completed, expected):
    assert certificates.calculate_percentage(total, completed) == expected


def _complete_all(user, course, lessons):
    for lesson in lessons:
        db.session.add(LessonProgress(user_id=user.id, lesson_id=lesson.id, is_completed=True))
    db.session.commit()


@pytest.fixture
def finished(make_user, make_course, lessons_of):
    user = make_user()
    course = make_course(title="Finished Course", modules=[[10], [15]])
    access.enroll(course.id, user)
    _complete_all(user, course, lessons_of(course))
    return user, course


def test_recompute_twice_issues_one_certificate(finished):
    user, course = finished

    certificates.recompute_course_progress(user.id, course.id)
    certificates.recompute_course_progress(user.id, course.id)

    assert Certificate.query.filter_by(user_id=user.id, course_id=course.id).count() == 1


def test_completed_at_does_not_move_on_recompute(finished):
    user, course = finished

    first = certificates.recompute_course_progress(user.id, course.id).completed_at
    second = certificates.recompute_course_progress(user.id, course.id).completed_at
    assert first is not None
    assert second == first


def test_certificate_snapshots_course_title(finished):
    user, course = finished
    certificates.recompute_course_progress(user.id, course.id)

    course.title = "Renamed Course"
    db.session.commit()
    certificates.recompute_course_progress(user.id, course.id)

    certificate = Certificate.query.filter_by(user_id=user.id, course_id=course.id).one()
    assert certificate.course_title == "Finished Course"
    assert certificate.pdf_url is None


def test_zero_lesson_course_never_certifies(make_user, make_course):
    user = make_user()
    course = make_course(modules=[])
    access.enroll(course.id, user)

    for _ in range(2):
        enrollment = certificates.recompute_course_progress(user.id, course.id)
        assert enrollment.progress == 0
        assert enrollment.status == "ACTIVE"
    assert Certificate.query.count() == 0


def test_issue_returns_existing_certificate(finished):
    user, course = finished
    first = certificates.issue_certificate_if_absent(user.id, course.id)
    second = certificates.issue_certificate_if_absent(user.id, course.id)
    assert first.id == second.id


def test_concurrent_issuance_is_absorbed(finished, monkeypatch):
    user, course = finished
    existing = Certificate(user_id=user.id, course_id=course.id, course_title=course.title)
    db.session.add(existing)
    db.session.commit()
    existing_id = existing.id

    real_lookup = certificates.get_certificate
    calls = []

    # the first lookup misses, as if another request inserted right after it
    def racing_lookup(user_id, course_id):
        calls.append(course_id)
        if len(calls) == 1:
            return None
        return real_lookup(user_id, course_id)

    monkeypatch.setattr(certificates, "get_certificate", racing_lookup)

    certificate = certificates.issue_certificate_if_absent(user.id, course.id)
    assert certificate.id == existing_id
    assert Certificate.query.count() == 1


def test_learner_is_emailed_once(finished):
    user, course = finished

    with mail.record_messages() as outbox:
        certificates.recompute_course_progress(user.id, course.id)
        certificates.recompute_course_progress(user.id, course.id)

    assert len(outbox) == 1
    assert outbox[0].recipients == [user.email]
    assert "Finished Course" in outbox[0].subject


def test_no_email_when_disabled(app, finished):
    user, course = finished
    app.config["CERTIFICATE_EMAILS_ENABLED"] = False

    with mail.record_messages() as outbox:
        certificates.recompute_course_progress(user.id, course.id)

    assert outbox == []
    assert Certificate.query.count() == 1


def test_mail_failure_does_not_undo_certificate(finished, monkeypatch):
    user, course = finished

    def failing_send(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(certificates, "send_email", failing_send)

    certificates.recompute_course_progress(user.id, course.id)
    assert Certificate.query.filter_by(user_id=user.id).count() == 1


def test_list_and_download_guard(client, finished, make_user, auth_headers):
    user, course = finished
    certificate = certificates.issue_certificate_if_absent(user.id, course.id)

    res = client.get("/certificates/", headers=auth_headers(user))
    assert [c["id"] for c in res.get_json()] == [certificate.id]

    stranger = make_user()
    res = client.get(f"/certificates/{certificate.id}/download", headers=auth_headers(stranger))
    assert res.status_code == 404


def test_recompute_without_enrollment(make_user, make_course):
    with pytest.raises(NotFound):
        certificates.recompute_course_progress(make_user().id, make_course().id)
    assert Enrollment.query.count() == 0
