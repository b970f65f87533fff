from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_current_user

from lms.services import qa

bp = Blueprint("answers", __name__)


@bp.route("/<int:answer_id>", methods=["PATCH"])
@jwt_required()
def update_answer(answer_id):
    data = request.get_json() or {}
    answer = qa.update_answer(get_current_user(), answer_id, data.get("content"))
    return jsonify(answer.to_dict()), 200


@bp.route("/<int:answer_id>", methods=["DELETE"])
@jwt_required()
def delete_answer(answer_id):
    qa.delete_answer(get_current_user(), answer_id)
    return jsonify({"message": "Answer deleted successfully"}), 200


# Only the question's author may accept
@bp.route("/<int:answer_id>/accept", methods=["POST"])
@jwt_required()
def accept_answer(answer_id):
    answer = qa.accept_answer(get_current_user(), answer_id)
    return jsonify(answer.to_dict()), 200
