"""
Verification gate endpoints.

- POST /api/verification/send: issue a code (429 while the subject is blocked).
- POST /api/verification/verify: consume a code.
- GET  /api/verification/status: block status.
- DELETE /api/verification/blocks[/{email}]: operator resets.

Wrong and expired codes get the same answer. Block responses carry the
remaining time only, never the block stage.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from propfind.api.dependencies import get_login_gate, get_verification_gate, require_admin
from propfind.core.config import settings
from propfind.helpers.getters import canEchoCodes
from propfind.helpers.validators import format_duration_ms, normalize_email, validate_university_email
from propfind.logging import get_logger
from propfind.models.user import User
from propfind.schemas.verification import (
    BlockStatusOut,
    SendVerificationEmailIn,
    SendVerificationEmailOut,
    VerificationCheckIn,
    VerificationCheckOut,
    VerificationSendIn,
    VerificationSendOut,
)
from propfind.services.login_gate import LoginAttemptGate
from propfind.services.notifications import dispatch_verification_code
from propfind.services.verification_gate import BlockStatus, VerificationGate

router = APIRouter()
# Legacy delivery endpoint, mounted at /api
delivery_router = APIRouter()
logger = get_logger(__name__)


def _block_message(block: BlockStatus) -> str:
    if block.remaining_ms <= 0:
        return "Too many verification requests. Contact support to unlock this email."
    return f"Too many verification requests. Try again in {format_duration_ms(block.remaining_ms)}."


@router.post("/send", response_model=VerificationSendOut)
async def send_code(payload: VerificationSendIn, gate: VerificationGate = Depends(get_verification_gate)):
    email = normalize_email(payload.email)
    if not validate_university_email(email):
        raise HTTPException(status_code=400, detail="A university email address is required")

    block = await gate.is_blocked(email)
    if block.blocked:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=_block_message(block))

    code = await gate.issue_code(email)
    await gate.record_resend_attempt(email)
    dispatch_verification_code(email, code, gate.ttl_seconds)

    return VerificationSendOut(
        success=True,
        message="Verification code sent",
        expires_in=gate.ttl_seconds,
        code=code if canEchoCodes() else None,
    )


@router.post("/verify", response_model=VerificationCheckOut)
async def verify_code(payload: VerificationCheckIn, gate: VerificationGate = Depends(get_verification_gate)):
    if not await gate.check_code(payload.email, payload.code):
        raise HTTPException(status_code=400, detail="Invalid verification code")
    return VerificationCheckOut(verified=True)


@router.get("/status", response_model=BlockStatusOut)
async def block_status(email: str, gate: VerificationGate = Depends(get_verification_gate)):
    block = await gate.is_blocked(email)
    counter = await gate.get_counter(email)
    return BlockStatusOut(
        blocked=block.blocked,
        remaining_ms=block.remaining_ms,
        resend_count=counter.resend_count,
        message=_block_message(block) if block.blocked else None,
    )


@router.delete("/blocks/{email}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_subject(
    email: str,
    admin: User = Depends(require_admin),
    gate: VerificationGate = Depends(get_verification_gate),
    login_gate: LoginAttemptGate = Depends(get_login_gate),
):
    await gate.reset(email)
    await login_gate.reset(email)
    logger.info("Subject throttling reset by operator", email=normalize_email(email), admin_id=admin.id)


@router.delete("/blocks", status_code=status.HTTP_204_NO_CONTENT)
async def reset_all_subjects(
    admin: User = Depends(require_admin),
    gate: VerificationGate = Depends(get_verification_gate),
    login_gate: LoginAttemptGate = Depends(get_login_gate),
):
    await gate.reset_all()
    await login_gate.reset_all()
    logger.warning("All throttling state reset by operator", admin_id=admin.id)


@delivery_router.post("/send-verification-email", response_model=SendVerificationEmailOut)
async def send_verification_email(payload: SendVerificationEmailIn):
    """
    Deliver an already-issued code. The code is echoed back only when
    echoing is enabled outside production.
    """
    queued = dispatch_verification_code(payload.email, payload.code, settings.VERIFICATION_CODE_TTL_SECONDS)
    if not queued:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to send verification code"},
        )
    return SendVerificationEmailOut(
        success=True,
        message="Verification code sent successfully",
        code=payload.code if canEchoCodes() else None,
    )
