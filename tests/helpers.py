"""
Shared test helpers.
"""

from datetime import datetime, timedelta, timezone

from propfind.core.security import create_access_token


class FakeClock:
    """Callable clock the gates read instead of the wall clock."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def bearer(user) -> dict:
    """Authorization header for ``user``."""
    token = create_access_token(data={"sub": str(user.id)}, token_version=user.token_version)
    return {"Authorization": f"Bearer {token}"}
