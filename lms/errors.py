from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from lms.extensions import db


class LMSError(Exception):
    """Base class for failures reported to the client as ``{"error", "kind"}``."""

    status_code = 500
    kind = "error"
    default_message = "Something went wrong"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message, "kind": self.kind}


class ValidationError(LMSError):
    status_code = 400
    kind = "validation_error"
    default_message = "Invalid input"


class Unauthenticated(LMSError):
    status_code = 401
    kind = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(LMSError):
    status_code = 403
    kind = "forbidden"
    default_message = "Forbidden"


class NotFound(LMSError):
    status_code = 404
    kind = "not_found"
    default_message = "Not found"


class Conflict(LMSError):
    status_code = 409
    kind = "conflict"
    default_message = "Already exists"


class StoreError(LMSError):
    status_code = 500
    kind = "store_error"
    default_message = "Internal server error"


class ProgressAggregationError(StoreError):
    """The lesson progress was saved but the course aggregate was not.

    Recomputation is idempotent, so resubmitting the same progress is safe.
    """

    kind = "partial_failure"
    default_message = "Progress saved but course progress could not be updated; retry the submission"

    def __init__(self, progress, message=None):
        super().__init__(message)
        self.progress = progress

    def to_dict(self):
        data = super().to_dict()
        data["progress"] = self.progress
        return data


def register_error_handlers(app):
    @app.errorhandler(LMSError)
    def handle_lms_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.kind}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error):
        db.session.rollback()
        app.logger.exception("Database error while handling request")
        return jsonify(StoreError().to_dict()), StoreError.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        # routing errors such as 404 and 405 keep their own responses
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        app.logger.exception("Unhandled error while handling request")
        return jsonify(StoreError().to_dict()), StoreError.status_code
