from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from propfind.api.endpoints import auth, listings, receipts, requests, verification
from propfind.core.config import settings
from propfind.core.logging import init_sentry, setup_logging
from propfind.db.base import Base
from propfind.db.session import engine_internal
from propfind.helpers.getters import isDebugMode
from propfind.middleware.logging import AccessLoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine_internal.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine_internal.dispose()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="""
## Student housing marketplace

- **Verification**: 6-digit email codes with escalating resend blocks
- **Authentication**: university-email accounts, throttled logins
- **Listings**: community-uploaded properties
- **Access requests**: renters ask owners for contact, owners approve or reject once
- **Receipts**: mailbox of simulated payment / contact receipts

### Authenticating in the Swagger UI
Click **Authorize** and use your **email** in the `username` field.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

setup_logging()
init_sentry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Request logging is optional in debug mode
app.add_middleware(AccessLoggingMiddleware, enabled=not isDebugMode())

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(verification.router, prefix="/api/verification", tags=["verification"])
app.include_router(verification.delivery_router, prefix="/api", tags=["verification"])
app.include_router(listings.router, prefix="/api/listings", tags=["listings"])
app.include_router(requests.router, prefix="/api/requests", tags=["requests"])
app.include_router(receipts.router, prefix="/api/receipts", tags=["receipts"])


@app.get("/")
def root():
    return {"message": f"Welcome to the {settings.APP_NAME} API. See /docs for the OpenAPI schema."}


@app.get("/health")
def health():
    return {"status": "ok"}
