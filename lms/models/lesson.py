from lms.extensions import db
from datetime import datetime


class Lesson(db.Model):
    __tablename__ = "lesson"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    order = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.Integer, nullable=True)  # minutes
    is_free = db.Column(db.Boolean, nullable=False, default=False)
    video_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # each Lesson belongs to a Module, the Module to a Course
    module_id = db.Column(db.Integer, db.ForeignKey("module.id", ondelete="CASCADE"), nullable=False)

    module = db.relationship("Module", back_populates="lessons")
    progress = db.relationship("LessonProgress", back_populates="lesson", cascade="all, delete-orphan")

    @property
    def course(self):
        return self.module.course

    @property
    def has_free_access(self):
        return bool(self.is_free or self.course.is_free)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "duration": self.duration,
            "is_free": self.is_free,
            "module_id": self.module_id,
        }
