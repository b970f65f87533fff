from typing import NamedTuple, Optional

from lms.extensions import db
from lms.errors import ValidationError
from datetime import datetime

BOOKMARK_TYPES = ("ARTICLE", "BOOK", "COURSE")

# bookmark type -> the column holding the referenced id
RESOURCE_COLUMNS = {
    "ARTICLE": "article_id",
    "BOOK": "book_id",
    "COURSE": "course_id",
}


class ResourceRef(NamedTuple):
    """A reference to exactly one bookmarkable resource."""

    kind: str
    id: int

    @classmethod
    def from_ids(cls, article_id=None, book_id=None, course_id=None, type: Optional[str] = None):
        given = {
            kind: value
            for kind, value in (("ARTICLE", article_id), ("BOOK", book_id), ("COURSE", course_id))
            if value is not None
        }
        if len(given) != 1:
            raise ValidationError("Exactly one resource ID must be provided")

        kind, value = given.popitem()
        if type is not None and type != kind:
            raise ValidationError(f"Bookmark type {type} does not match the provided {kind.lower()} ID")
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValidationError("Resource ID must be an integer")
        return cls(kind, value)

    @property
    def column(self):
        return RESOURCE_COLUMNS[self.kind]

    def columns(self):
        """All three resource columns, with only this reference's column set."""
        values = {column: None for column in RESOURCE_COLUMNS.values()}
        values[self.column] = self.id
        return values


class Bookmark(db.Model):
    __tablename__ = "bookmark"
    __table_args__ = (
        db.UniqueConstraint("user_id", "type", "article_id", "book_id", "course_id", name="uq_bookmark_resource"),
        # NULLs compare distinct in the constraint above, so each resource column gets its own partial index
        db.Index(
            "uq_bookmark_user_article", "user_id", "article_id", unique=True,
            sqlite_where=db.text("article_id IS NOT NULL"), postgresql_where=db.text("article_id IS NOT NULL"),
        ),
        db.Index(
            "uq_bookmark_user_book", "user_id", "book_id", unique=True,
            sqlite_where=db.text("book_id IS NOT NULL"), postgresql_where=db.text("book_id IS NOT NULL"),
        ),
        db.Index(
            "uq_bookmark_user_course", "user_id", "course_id", unique=True,
            sqlite_where=db.text("course_id IS NOT NULL"), postgresql_where=db.text("course_id IS NOT NULL"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(db.Enum(*BOOKMARK_TYPES, name="bookmark_type"), nullable=False)
    article_id = db.Column(db.Integer, db.ForeignKey("article.id", ondelete="CASCADE"), nullable=True)
    book_id = db.Column(db.Integer, db.ForeignKey("book.id", ondelete="CASCADE"), nullable=True)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="bookmarks")
    article = db.relationship("Article")
    book = db.relationship("Book")
    course = db.relationship("Course")

    @classmethod
    def for_resource(cls, user_id, ref):
        return cls(user_id=user_id, type=ref.kind, **ref.columns())

    @property
    def resource(self):
        return {"ARTICLE": self.article, "BOOK": self.book, "COURSE": self.course}[self.type]

    def to_dict(self):
        resource = self.resource
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "article_id": self.article_id,
            "book_id": self.book_id,
            "course_id": self.course_id,
            "resource": resource.summary() if resource is not None else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
