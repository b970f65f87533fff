from lms.extensions import db
from datetime import datetime

COURSE_STATUSES = ("DRAFT", "PUBLISHED", "ARCHIVED")


class Course(db.Model):
    __tablename__ = "course"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_free = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.Enum(*COURSE_STATUSES, name="course_status"), nullable=False, default="DRAFT")
    author_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    modules = db.relationship(
        "Module",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Module.order",
    )
    enrollments = db.relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")

    @property
    def is_published(self):
        return self.status == "PUBLISHED"

    @property
    def total_lessons(self):
        return sum(len(module.lessons) for module in self.modules)

    def summary(self):
        return {"id": self.id, "title": self.title, "slug": self.slug, "is_free": self.is_free}

    def to_dict(self, outline=False):
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "is_free": self.is_free,
            "status": self.status,
            "total_lessons": self.total_lessons,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if outline:
            data["modules"] = [module.to_dict(lessons=True) for module in self.modules]
        return data


class Module(db.Model):
    __tablename__ = "module"
    __table_args__ = (db.UniqueConstraint("course_id", "order", name="uq_module_course_order"),)

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    order = db.Column(db.Integer, nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)

    course = db.relationship("Course", back_populates="modules")
    lessons = db.relationship(
        "Lesson",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order",
    )

    def to_dict(self, lessons=False):
        data = {"id": self.id, "title": self.title, "order": self.order, "course_id": self.course_id}
        if lessons:
            data["lessons"] = [lesson.to_dict() for lesson in self.lessons]
        return data
