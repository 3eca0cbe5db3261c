"""
Authentication endpoints.

- /register: creates an account after the email's verification code checks out.
- /login, /token: credential login behind the login attempt gate.
- /me: current user.
- /me/wallet: connect or disconnect a wallet address.

Failed logins report how many attempts remain; after the maximum the
subject is blocked for a fixed window and told how long to wait.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.api.dependencies import get_current_user, get_db, get_login_gate, get_verification_gate
from propfind.core.security import create_access_token, get_password_hash, verify_password
from propfind.helpers.validators import (
    format_duration_ms,
    is_admin_email,
    normalize_email,
    validate_university_email,
)
from propfind.logging import get_logger
from propfind.models.user import User
from propfind.schemas.auth import Login, LoginStatusOut, Token
from propfind.schemas.user import UserCreate, UserOut, WalletUpdate
from propfind.services.login_gate import LoginAttemptGate
from propfind.services.verification_gate import VerificationGate

router = APIRouter()
logger = get_logger(__name__)


async def _authenticate(email: str, password: str, db: AsyncSession, gate: LoginAttemptGate) -> Token:
    email = normalize_email(email)
    block = await gate.check_block_status(email)
    if block.blocked:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Account temporarily blocked. Try again in {format_duration_ms(block.block_time_left_ms)}."
        )

    result = await db.execute(select(User).filter(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password):
        attempt = await gate.record_login_attempt(email, success=False)
        logger.warning("Failed login", email=email, attempts_left=attempt.attempts_left)
        if attempt.blocked:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many failed attempts. Account blocked for {format_duration_ms(attempt.block_time_left_ms)}."
            )
        plural = "attempt" if attempt.attempts_left == 1 else "attempts"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid credentials. {attempt.attempts_left} {plural} remaining.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    await gate.record_login_attempt(email, success=True)
    user.last_active_at = datetime.now(timezone.utc)
    await db.commit()

    access_token = create_access_token(data={"sub": str(user.id)}, token_version=user.token_version)
    return Token(access_token=access_token, token_type="bearer")


@router.post("/token", response_model=Token)
async def oauth2_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    gate: LoginAttemptGate = Depends(get_login_gate),
):
    """
    OAuth2 password flow used by the Swagger UI "Authorize" button.

    The OAuth2 'username' field carries the email.
    """
    return await _authenticate(form_data.username, form_data.password, db, gate)


@router.post("/login", response_model=Token)
async def login(
    login_data: Login,
    db: AsyncSession = Depends(get_db),
    gate: LoginAttemptGate = Depends(get_login_gate),
):
    return await _authenticate(login_data.email, login_data.password, db, gate)


@router.get("/login/status", response_model=LoginStatusOut)
async def login_status(email: str, gate: LoginAttemptGate = Depends(get_login_gate)):
    """Lets the client pre-empt a credential check that would be refused."""
    block = await gate.check_block_status(email)
    return LoginStatusOut(
        blocked=block.blocked,
        attempts_left=block.attempts_left,
        block_time_left_ms=block.block_time_left_ms,
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user: UserCreate,
    db: AsyncSession = Depends(get_db),
    gate: VerificationGate = Depends(get_verification_gate),
):
    email = normalize_email(user.email)
    if not validate_university_email(email):
        raise HTTPException(status_code=400, detail="A university email address is required")

    result = await db.execute(select(User).filter(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    if not await gate.check_code(email, user.verification_code):
        raise HTTPException(status_code=400, detail="Invalid verification code")

    new_user = User(
        name=user.name,
        email=email,
        password=get_password_hash(user.password),
        is_admin=is_admin_email(email),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.great("User registered", user_id=new_user.id)

    access_token = create_access_token(data={"sub": str(new_user.id)}, token_version=new_user.token_version)
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me/wallet", response_model=UserOut)
async def update_wallet(
    payload: WalletUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    current_user.wallet_address = payload.wallet_address
    current_user.wallet_connected_at = datetime.now(timezone.utc) if payload.wallet_address else None
    await db.commit()
    await db.refresh(current_user)
    return current_user
