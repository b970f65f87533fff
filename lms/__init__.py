from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, mail
from .utils.auth import register_jwt_callbacks


def create_app(config_class=Config):
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    CORS(app, resources={r"/*": {"origins": "*"}})
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    register_jwt_callbacks(jwt)
    register_error_handlers(app)

    # Models must be imported before create_all / migrations see the metadata
    from . import models  # noqa: F401
    from .routes import auth, courses, lessons, enrollments, progress, certificates, bookmarks, questions, answers

    # Register blueprints
    app.register_blueprint(auth.bp, url_prefix="/auth")
    app.register_blueprint(courses.bp, url_prefix="/courses")
    app.register_blueprint(lessons.bp, url_prefix="/lessons")
    app.register_blueprint(enrollments.bp, url_prefix="/enrollments")
    app.register_blueprint(progress.bp, url_prefix="/progress")
    app.register_blueprint(certificates.bp, url_prefix="/certificates")
    app.register_blueprint(bookmarks.bp, url_prefix="/bookmarks")
    app.register_blueprint(questions.bp, url_prefix="/questions")
    app.register_blueprint(answers.bp, url_prefix="/answers")

    app.logger.info("LMS API initialised")
    return app
