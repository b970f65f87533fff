"""Questions, answers and answer acceptance."""
from flask import current_app
from sqlalchemy import func

from lms.errors import Forbidden, NotFound, ValidationError
from lms.extensions import db
from lms.models import Answer, Question
from lms.models.question import QUESTION_STATUSES
from lms.utils.auth import is_owner_or_elevated

MIN_TITLE_LENGTH = 10
MIN_QUESTION_LENGTH = 20
MIN_ANSWER_LENGTH = 10


def _get_question(question_id):
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFound("Question not found")
    return question


def _get_answer(answer_id):
    answer = db.session.get(Answer, answer_id)
    if answer is None:
        raise NotFound("Answer not found")
    return answer


def _validate_answer_content(content):
    if not content or not isinstance(content, str):
        raise ValidationError("Content is required")
    if len(content) < MIN_ANSWER_LENGTH:
        raise ValidationError(f"Answer must be at least {MIN_ANSWER_LENGTH} characters")


def _require_text(field, value):
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")


def create_question(principal, title, content):
    _require_text("title", title)
    _require_text("content", content)

    errors = {}
    if not title:
        errors["title"] = "Title is required"
    elif len(title) < MIN_TITLE_LENGTH:
        errors["title"] = f"Title must be at least {MIN_TITLE_LENGTH} characters"
    if not content:
        errors["content"] = "Content is required"
    elif len(content) < MIN_QUESTION_LENGTH:
        errors["content"] = f"Content must be at least {MIN_QUESTION_LENGTH} characters"
    if errors:
        raise ValidationError("; ".join(errors.values()))

    question = Question(user_id=principal.id, title=title, content=content, status="OPEN")
    db.session.add(question)
    db.session.commit()
    current_app.logger.info(f"User {principal.id} asked question {question.id}")
    return question


def list_questions(status=None, user_id=None, page=1, limit=10):
    if status is not None and status not in QUESTION_STATUSES:
        raise ValidationError("Invalid question status")

    answer_counts = (
        db.session.query(Answer.question_id, func.count(Answer.id).label("answer_count"))
        .group_by(Answer.question_id)
        .subquery()
    )
    query = (
        db.session.query(Question, func.coalesce(answer_counts.c.answer_count, 0))
        .outerjoin(answer_counts, answer_counts.c.question_id == Question.id)
    )
    if status:
        query = query.filter(Question.status == status)
    if user_id:
        query = query.filter(Question.user_id == user_id)

    total = query.count()
    rows = (
        query.order_by(Question.created_at.desc(), Question.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "questions": [question.to_dict(answer_count=count) for question, count in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


def get_question(question_id):
    """Load a question with its answers and count the view."""
    question = _get_question(question_id)
    db.session.query(Question).filter(Question.id == question.id).update(
        {Question.views: Question.views + 1}, synchronize_session=False
    )
    db.session.commit()
    return question


def update_question(principal, question_id, title=None, content=None, status=None):
    question = _get_question(question_id)
    if not is_owner_or_elevated(principal, question.user_id):
        raise Forbidden("Not authorized to update this question")
    _require_text("title", title)
    _require_text("content", content)

    if title is not None:
        if len(title) < MIN_TITLE_LENGTH:
            raise ValidationError(f"Title must be at least {MIN_TITLE_LENGTH} characters")
        question.title = title
    if content is not None:
        if len(content) < MIN_QUESTION_LENGTH:
            raise ValidationError(f"Content must be at least {MIN_QUESTION_LENGTH} characters")
        question.content = content
    if status is not None:
        if status not in QUESTION_STATUSES:
            raise ValidationError("Invalid question status")
        question.status = status

    db.session.commit()
    return question


def delete_question(principal, question_id):
    question = _get_question(question_id)
    if not is_owner_or_elevated(principal, question.user_id):
        raise Forbidden("Not authorized to delete this question")

    db.session.delete(question)
    db.session.commit()
    current_app.logger.info(f"User {principal.id} deleted question {question_id}")


def create_answer(principal, question_id, content):
    _validate_answer_content(content)
    question = _get_question(question_id)

    answer = Answer(question_id=question.id, user_id=principal.id, content=content)
    db.session.add(answer)
    if question.status == "OPEN":
        question.status = "ANSWERED"
    db.session.commit()

    current_app.logger.info(f"User {principal.id} answered question {question.id}")
    return answer


def update_answer(principal, answer_id, content):
    answer = _get_answer(answer_id)
    if not is_owner_or_elevated(principal, answer.user_id):
        raise Forbidden("Not authorized to update this answer")

    _validate_answer_content(content)
    answer.content = content
    db.session.commit()
    return answer


def accept_answer(principal, answer_id):
    answer = _get_answer(answer_id)

    # lock the question so concurrent accepts on it serialize
    question = (
        db.session.query(Question)
        .filter(Question.id == answer.question_id)
        .with_for_update()
        .one()
    )
    if question.user_id != principal.id:
        db.session.rollback()
        raise Forbidden("Only question owner can accept answers")

    db.session.query(Answer).filter(
        Answer.question_id == question.id,
        Answer.id != answer.id,
        Answer.is_accepted.is_(True),
    ).update({Answer.is_accepted: False}, synchronize_session=False)
    answer.is_accepted = True
    db.session.commit()

    current_app.logger.info(f"Answer {answer.id} accepted on question {question.id}")
    return answer


def delete_answer(principal, answer_id):
    answer = _get_answer(answer_id)
    if not is_owner_or_elevated(principal, answer.user_id):
        raise Forbidden("Not authorized to delete this answer")

    question_id = answer.question_id
    db.session.delete(answer)
    db.session.flush()

    remaining = Answer.query.filter_by(question_id=question_id).count()
    if remaining == 0:
        # reverts even a CLOSED question
        db.session.query(Question).filter(Question.id == question_id).update(
            {Question.status: "OPEN"}, synchronize_session=False
        )
    db.session.commit()
    current_app.logger.info(f"User {principal.id} deleted answer {answer_id}; {remaining} answers remain")
