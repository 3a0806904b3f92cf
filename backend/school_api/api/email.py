"""
Email API: the public contact form, delivered over SMTP to CONTACT_RECIPIENT.
"""
import logging
import smtplib

from fastapi import APIRouter, Depends

from school_api.api.responses import send_success
from school_api.errors import BadRequest, ServerError
from school_api.schemas.support import ContactRequest
from school_api.services.email import EmailService
from school_api.services.validation import is_valid_email, missing_fields

router = APIRouter(prefix="/api/email", tags=["email"])
logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "subject", "message")


def get_email_service() -> EmailService:
    return EmailService()


def deliver_contact(data: ContactRequest, mailer: EmailService, missing_message: str, failure_message: str) -> None:
    """Validate the form and send it. 400 on missing fields or a bad address, 500 when SMTP fails or is not configured."""
    if missing_fields(data.model_dump(), CONTACT_FIELDS):
        raise BadRequest(missing_message)
    if not is_valid_email(data.email.strip()):
        raise BadRequest("Invalid email format")
    try:
        sent = mailer.send_contact_message(data.name.strip(), data.email.strip(), data.subject.strip(), data.message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Contact email failed: %s", e)
        raise ServerError(failure_message)
    if not sent:
        raise ServerError(failure_message)


@router.get("/health")
def email_health():
    return send_success("Service is healthy")


@router.post("/contact")
def contact(data: ContactRequest, mailer: EmailService = Depends(get_email_service)):
    deliver_contact(data, mailer, "All fields are required.", "Failed to send message.")
    return send_success("Message sent successfully!")
