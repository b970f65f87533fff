from lms.extensions import db
from datetime import datetime

ENROLLMENT_STATUSES = ("ACTIVE", "COMPLETED")


class Enrollment(db.Model):
    __tablename__ = "enrollment"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    status = db.Column(db.Enum(*ENROLLMENT_STATUSES, name="enrollment_status"), nullable=False, default="ACTIVE")
    progress = db.Column(db.Integer, nullable=False, default=0)  # percentage
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    student = db.relationship("User", back_populates="enrollments")
    course = db.relationship("Course", back_populates="enrollments")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "course_title": self.course.title if self.course else None,
            "status": self.status,
            "progress": self.progress,
            "enrolled_at": self.enrolled_at.isoformat() if self.enrolled_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
