"""Saved references to articles, books and courses."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from lms.errors import Conflict, Forbidden, NotFound, ValidationError
from lms.extensions import db
from lms.models import Article, Book, Bookmark, Course
from lms.models.bookmark import BOOKMARK_TYPES

RESOURCE_MODELS = {"ARTICLE": Article, "BOOK": Book, "COURSE": Course}


def validate_type(type, required=True):
    if type is None and not required:
        return None
    if type not in BOOKMARK_TYPES:
        raise ValidationError("Valid bookmark type is required")
    return type


def _find(user_id, type, ref):
    return Bookmark.query.filter_by(user_id=user_id, type=type, **ref.columns()).first()


def create_bookmark(user_id, type, ref):
    validate_type(type)
    if db.session.get(RESOURCE_MODELS[ref.kind], ref.id) is None:
        raise NotFound(f"{ref.kind.title()} not found")

    if _find(user_id, type, ref) is not None:
        raise Conflict("Already bookmarked")

    bookmark = Bookmark.for_resource(user_id, ref)
    db.session.add(bookmark)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Already bookmarked")

    current_app.logger.info(f"User {user_id} bookmarked {ref.kind} {ref.id}")
    return bookmark


def delete_bookmark(principal, bookmark_id):
    bookmark = db.session.get(Bookmark, bookmark_id)
    if bookmark is None:
        raise NotFound("Bookmark not found")
    if bookmark.user_id != principal.id:
        raise Forbidden("Not authorized to delete this bookmark")

    db.session.delete(bookmark)
    db.session.commit()


def delete_bookmark_by_resource(user_id, type, ref):
    validate_type(type)
    bookmark = _find(user_id, type, ref)
    if bookmark is None:
        raise NotFound("Bookmark not found")

    db.session.delete(bookmark)
    db.session.commit()
    current_app.logger.info(f"User {user_id} removed bookmark on {ref.kind} {ref.id}")


def is_bookmarked(user_id, type, ref):
    validate_type(type)
    return _find(user_id, type, ref) is not None


def count_for_resource(ref):
    return Bookmark.query.filter(getattr(Bookmark, ref.column) == ref.id).count()


def list_for_user(user_id, type=None):
    query = Bookmark.query.filter_by(user_id=user_id)
    if validate_type(type, required=False):
        query = query.filter_by(type=type)
    return query.order_by(Bookmark.created_at.desc(), Bookmark.id.desc()).all()
