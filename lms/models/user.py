from lms.extensions import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

USER_ROLES = ("USER", "INSTRUCTOR", "ADMIN", "SUPER_ADMIN")
ELEVATED_ROLES = ("ADMIN", "SUPER_ADMIN")
AUTHOR_ROLES = ("INSTRUCTOR",) + ELEVATED_ROLES
USER_STATUSES = ("ACTIVE", "INACTIVE", "SUSPENDED")


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)
    role = db.Column(db.Enum(*USER_ROLES, name="user_role"), nullable=False, default="USER")
    status = db.Column(db.Enum(*USER_STATUSES, name="user_status"), nullable=False, default="ACTIVE")
    image = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    enrollments = db.relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
    progress = db.relationship("LessonProgress", back_populates="student", cascade="all, delete-orphan")
    certificates = db.relationship("Certificate", back_populates="student", cascade="all, delete-orphan")
    bookmarks = db.relationship("Bookmark", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.status == "ACTIVE"

    @property
    def is_elevated(self):
        return self.role in ELEVATED_ROLES

    def summary(self):
        return {"id": self.id, "name": self.full_name, "image": self.image}

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "image": self.image,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"
