from flask import current_app
from flask_mail import Message

from lms.extensions import mail


def send_email(to, subject, body, html=None):
    """Send a plain-text (and optionally HTML) email through Flask-Mail."""

    sender = current_app.config.get("MAIL_DEFAULT_SENDER")

    # Never mail the sender address itself
    if to == sender or (isinstance(to, list) and sender in to):
        current_app.logger.info(f"Skipped sending email to sender address: {sender}")
        return False

    msg = Message(
        subject=subject,
        recipients=[to] if isinstance(to, str) else to,
        sender=sender,
    )
    msg.body = body
    if html:
        msg.html = html

    mail.send(msg)
    current_app.logger.info(f"Email '{subject}' sent to {to}")
    return True
