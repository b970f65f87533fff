from lms.extensions import db
from datetime import datetime

QUESTION_STATUSES = ("OPEN", "ANSWERED", "CLOSED")


class Question(db.Model):
    __tablename__ = "question"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum(*QUESTION_STATUSES, name="question_status"), nullable=False, default="OPEN")
    views = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = db.relationship("User")
    answers = db.relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Answer.created_at",
    )

    def to_dict(self, answers=False, answer_count=None):
        data = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "status": self.status,
            "views": self.views,
            "user": self.author.summary() if self.author else None,
            "answer_count": answer_count if answer_count is not None else len(self.answers),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if answers:
            data["answers"] = [answer.to_dict() for answer in self.answers]
        return data


class Answer(db.Model):
    __tablename__ = "answer"

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey("question.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_accepted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    question = db.relationship("Question", back_populates="answers")
    author = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "question_id": self.question_id,
            "content": self.content,
            "is_accepted": self.is_accepted,
            "user": self.author.summary() if self.author else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
