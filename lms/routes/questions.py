from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_current_user

from lms.services import qa

bp = Blueprint("questions", __name__)


@bp.route("/", methods=["GET"])
def list_questions():
    per_page = current_app.config.get("QUESTIONS_PER_PAGE", 10)
    max_per_page = current_app.config.get("MAX_QUESTIONS_PER_PAGE", 100)
    page = max(1, request.args.get("page", 1, type=int))
    limit = min(max_per_page, max(1, request.args.get("limit", per_page, type=int)))

    result = qa.list_questions(
        status=request.args.get("status"),
        user_id=request.args.get("user_id", type=int),
        page=page,
        limit=limit,
    )
    return jsonify(result), 200


@bp.route("/", methods=["POST"])
@jwt_required()
def create_question():
    data = request.get_json() or {}
    question = qa.create_question(get_current_user(), data.get("title"), data.get("content"))
    return jsonify(question.to_dict(answers=True)), 201


@bp.route("/<int:question_id>", methods=["GET"])
def get_question(question_id):
    question = qa.get_question(question_id)
    return jsonify(question.to_dict(answers=True)), 200


@bp.route("/<int:question_id>", methods=["PATCH"])
@jwt_required()
def update_question(question_id):
    data = request.get_json() or {}
    question = qa.update_question(
        get_current_user(),
        question_id,
        title=data.get("title"),
        content=data.get("content"),
        status=data.get("status"),
    )
    return jsonify(question.to_dict(answers=True)), 200


@bp.route("/<int:question_id>", methods=["DELETE"])
@jwt_required()
def delete_question(question_id):
    qa.delete_question(get_current_user(), question_id)
    return jsonify({"message": "Question deleted successfully"}), 200


@bp.route("/<int:question_id>/answers", methods=["POST"])
@jwt_required()
def create_answer(question_id):
    data = request.get_json() or {}
    answer = qa.create_answer(get_current_user(), question_id, data.get("content"))
    return jsonify(answer.to_dict()), 201
