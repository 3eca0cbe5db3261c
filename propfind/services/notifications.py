"""
Outbound notifications dispatched as Celery tasks.

Delivery is a side effect: a broker outage is logged and reported to Sentry,
never raised to the caller.
"""
from kombu.exceptions import OperationalError

from propfind.core.config import settings
from propfind.core.logging import capture_error
from propfind.logging import get_logger
from propfind.models.property_request import PropertyRequest
from propfind.mycelery.worker import (
    send_request_notification,
    send_request_notification_local,
    send_verification_code,
    send_verification_code_local,
)

logger = get_logger(__name__)


def _uses_smtp() -> bool:
    return settings.EMAIL_BACKEND == "smtp"


def dispatch_verification_code(email: str, code: str, expires_in: int) -> bool:
    task = send_verification_code if _uses_smtp() else send_verification_code_local
    try:
        task.delay(email, code, expires_in)
    except OperationalError as e:
        logger.error("Could not queue verification email", email=email)
        capture_error(e, tags={"channel": "verification_email"})
        return False
    return True


class RequestNotifier:
    """Tells the other party about access request activity."""

    def _dispatch(self, to_email: str, event: str, request: PropertyRequest, property_title: str) -> bool:
        task = send_request_notification if _uses_smtp() else send_request_notification_local
        try:
            task.delay(
                to_email=to_email,
                event=event,
                request_id=request.id,
                property_title=property_title,
                status=request.status,
                message=request.response_message if event == "responded" else request.message,
            )
        except OperationalError as e:
            logger.error("Could not queue request notification", request_id=request.id, event=event)
            capture_error(e, context={"property_request": {"id": request.id, "event": event}})
            return False
        return True

    def request_created(self, request: PropertyRequest, owner_email: str, property_title: str) -> bool:
        return self._dispatch(owner_email, "created", request, property_title)

    def request_responded(self, request: PropertyRequest, requester_email: str, property_title: str) -> bool:
        return self._dispatch(requester_email, "responded", request, property_title)
