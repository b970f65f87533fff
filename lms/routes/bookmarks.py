from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_current_user

from lms.models import ResourceRef
from lms.services import bookmarks

bp = Blueprint("bookmarks", __name__)


def _ref_from(source, type=None):
    return ResourceRef.from_ids(
        article_id=source.get("article_id"),
        book_id=source.get("book_id"),
        course_id=source.get("course_id"),
        type=type,
    )


@bp.route("/", methods=["POST"])
@jwt_required()
def create_bookmark():
    data = request.get_json() or {}
    type = bookmarks.validate_type(data.get("type"))
    bookmark = bookmarks.create_bookmark(get_current_user().id, type, _ref_from(data, type))
    return jsonify(bookmark.to_dict()), 201


@bp.route("/", methods=["GET"])
@jwt_required()
def list_bookmarks():
    items = bookmarks.list_for_user(get_current_user().id, request.args.get("type"))
    return jsonify([b.to_dict() for b in items]), 200


@bp.route("/<int:bookmark_id>", methods=["DELETE"])
@jwt_required()
def delete_bookmark(bookmark_id):
    bookmarks.delete_bookmark(get_current_user(), bookmark_id)
    return jsonify({"message": "Bookmark removed successfully"}), 200


@bp.route("/resource", methods=["DELETE"])
@jwt_required()
def delete_bookmark_by_resource():
    data = request.get_json() or {}
    type = bookmarks.validate_type(data.get("type"))
    bookmarks.delete_bookmark_by_resource(get_current_user().id, type, _ref_from(data, type))
    return jsonify({"message": "Bookmark removed successfully"}), 200


@bp.route("/check", methods=["GET"])
@jwt_required()
def check_bookmark():
    type = bookmarks.validate_type(request.args.get("type"))
    bookmarked = bookmarks.is_bookmarked(get_current_user().id, type, _ref_from(request.args, type))
    return jsonify({"is_bookmarked": bookmarked}), 200


@bp.route("/count", methods=["GET"])
def bookmark_count():
    return jsonify({"count": bookmarks.count_for_resource(_ref_from(request.args))}), 200
