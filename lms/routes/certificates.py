import io

from flask import Blueprint, jsonify, send_file
from flask_jwt_extended import jwt_required, get_current_user

from lms.errors import NotFound
from lms.extensions import db
from lms.models import Certificate
from lms.services import certificates

bp = Blueprint("certificates", __name__)


@bp.route("/", methods=["GET"])
@jwt_required()
def list_certificates():
    return jsonify([c.to_dict() for c in certificates.list_certificates(get_current_user().id)]), 200


@bp.route("/<int:certificate_id>/download", methods=["GET"])
@jwt_required()
def download_certificate(certificate_id):
    certificate = db.session.get(Certificate, certificate_id)
    if certificate is None or certificate.user_id != get_current_user().id:
        raise NotFound("Certificate not found")

    pdf = certificates.render_certificate_pdf(certificate)
    return send_file(
        io.BytesIO(pdf),
        download_name=f"certificate_{certificate.id}.pdf",
        as_attachment=True,
        mimetype="application/pdf",
    )
