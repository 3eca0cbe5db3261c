import html
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from propfind.mycelery.app import celery_app
from propfind.core.config import settings
from propfind.logging import get_logger

logger = get_logger("propfind.mail")


class EmailNotConfiguredError(Exception):
    """SMTP credentials are missing; retrying cannot succeed."""


def _send_html_email(to_email: str, subject: str, body: str) -> None:
    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        raise EmailNotConfiguredError("SMTP credentials not configured")

    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    msg = MIMEMultipart()
    msg['From'] = f"{settings.SMTP_FROM_NAME} <{from_email}>"
    msg['To'] = to_email
    msg['Subject'] = subject
    msg.attach(MIMEText(body, 'html'))

    with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(from_email, to_email, msg.as_string())


@celery_app.task(name="send_verification_code", bind=True, max_retries=3)
def send_verification_code(self, email: str, code: str, expires_in: int):
    """Deliver a verification code by SMTP, retrying with exponential backoff."""
    minutes = max(1, expires_in // 60)
    body = f"""
    <html>
        <body>
            <h2>Your {settings.APP_NAME} verification code</h2>
            <p>Your verification code is: <strong>{code}</strong></p>
            <p>This code expires in {minutes} minute{'s' if minutes != 1 else ''}.</p>
            <p>If you did not request this code, you can ignore this email.</p>
        </body>
    </html>
    """
    try:
        _send_html_email(email, f"{settings.APP_NAME} verification code", body)
    except EmailNotConfiguredError as e:
        logger.error("Verification email not sent", exc_info=False, email=email, error=str(e))
        return {"sent": False, "email": email}
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send verification code", email=email, error=str(e))
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    logger.info("Verification code sent", email=email)
    return {"sent": True, "email": email}


@celery_app.task(name="send_verification_code_local")
def send_verification_code_local(email: str, code: str, expires_in: int):
    """Console delivery for development: logs the recipient, never the code."""
    logger.info("Simulated verification email", email=email, expires_in=expires_in)
    return {"sent": True}


def _request_notification_body(event: str, property_title: str, status: str, message: str) -> str:
    """User-supplied text is HTML-escaped before it reaches the body."""
    property_title = html.escape(property_title or "")
    status = html.escape(status or "")
    message = html.escape(message or "")
    if event == "created":
        headline = f"New contact request for {property_title}"
    else:
        headline = f"Your request for {property_title} was {status}"
    return f"""
    <html>
        <body>
            <h2>{headline}</h2>
            <p>{message}</p>
            <hr>
            <p><small>{settings.APP_NAME} - do not reply to this email</small></p>
        </body>
    </html>
    """


@celery_app.task(name="send_request_notification", bind=True, max_retries=3)
def send_request_notification(self, to_email: str, event: str, request_id: str,
                              property_title: str, status: str, message: str = ""):
    body = _request_notification_body(event, property_title, status, message)
    try:
        _send_html_email(to_email, f"{settings.APP_NAME}: request {status}", body)
    except EmailNotConfiguredError as e:
        logger.error("Request notification not sent", exc_info=False, request_id=request_id, error=str(e))
        return {"sent": False, "request_id": request_id}
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send request notification", request_id=request_id, error=str(e))
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    return {"sent": True, "request_id": request_id}


@celery_app.task(name="send_request_notification_local")
def send_request_notification_local(to_email: str, event: str, request_id: str,
                                    property_title: str, status: str, message: str = ""):
    logger.info("Simulated request notification", to=to_email, event=event,
                request_id=request_id, status=status)
    return {"sent": True, "request_id": request_id}
