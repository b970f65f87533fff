from lms.extensions import db
from datetime import datetime


class Certificate(db.Model):
    __tablename__ = "certificate"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    # title as it was when the certificate was issued
    course_title = db.Column(db.String(200), nullable=False)
    issue_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    pdf_url = db.Column(db.String(500), nullable=True)

    student = db.relationship("User", back_populates="certificates")
    course = db.relationship("Course")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "course_title": self.course_title,
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "pdf_url": self.pdf_url,
        }
