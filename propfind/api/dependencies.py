from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.core.config import settings
from propfind.core.security import SECRET_KEY, ALGORITHM
from propfind.db.session import SessionAsync
from propfind.helpers.getters import isDebugMode
from propfind.models.user import User
from propfind.services.login_gate import LoginAttemptGate
from propfind.services.notifications import RequestNotifier
from propfind.services.verification_gate import VerificationGate

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/token",
    description="Email and password authentication"
)


async def get_db():
    async with SessionAsync() as session:
        yield session


async def get_redis():
    redis = aioredis.from_url(
        settings.REDIS_URL_EXTERNAL if isDebugMode() else settings.REDIS_URL,
        decode_responses=True,
    )
    try:
        yield redis
    finally:
        await redis.aclose()


async def get_verification_gate(redis: aioredis.Redis = Depends(get_redis)) -> VerificationGate:
    return VerificationGate(redis)


async def get_login_gate(redis: aioredis.Redis = Depends(get_redis)) -> LoginAttemptGate:
    return LoginAttemptGate(redis)


def get_request_notifier() -> RequestNotifier:
    return RequestNotifier()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        tv = payload.get("tv")
        if user_id is None or tv is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = await db.get(User, int(user_id))
    if not user or int(tv) != int(user.token_version or 1):
        raise credentials_exception
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Operator-only endpoints (block resets)."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
