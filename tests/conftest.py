import itertools

import pytest
from flask_jwt_extended import create_access_token

from lms import create_app
from lms.config import TestingConfig
from lms.extensions import db
from lms.models import Article, Book, Course, Lesson, Module, User

_counter = itertools.count(1)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(role="USER", status="ACTIVE", full_name=None):
        n = next(_counter)
        user = User(
            full_name=full_name or f"Learner {n}",
            email=f"user{n}@example.com",
            role=role,
            status=status,
        )
        user.set_password("secret-password")
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(identity=user, additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def make_course(app):
    """Build a course; ``modules`` is a list of lesson-duration lists, one per module."""

    def _make_course(title="C", modules=((10, 20),), is_free=False, status="PUBLISHED", free_lessons=()):
        n = next(_counter)
        course = Course(title=title, slug=f"{title.lower().replace(' ', '-')}-{n}", is_free=is_free, status=status)
        db.session.add(course)
        position = 0
        for module_order, durations in enumerate(modules, start=1):
            module = Module(title=f"Module {module_order}", order=module_order, course=course)
            db.session.add(module)
            for lesson_order, duration in enumerate(durations, start=1):
                db.session.add(Lesson(
                    title=f"Lesson {module_order}.{lesson_order}",
                    order=lesson_order,
                    duration=duration,
                    is_free=position in free_lessons,
                    module=module,
                ))
                position += 1
        db.session.commit()
        return course

    return _make_course


@pytest.fixture
def lessons_of():
    def _lessons_of(course):
        return [lesson for module in course.modules for lesson in module.lessons]

    return _lessons_of


@pytest.fixture
def article(app):
    item = Article(title="Understanding Indexes", slug="understanding-indexes", is_published=True)
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def book(app):
    item = Book(title="Designing Data Systems", slug="designing-data-systems", author="M. K.", is_published=True)
    db.session.add(item)
    db.session.commit()
    return item
