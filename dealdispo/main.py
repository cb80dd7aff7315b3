import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import (
    ALLOWED_ORIGINS,
    CONSTANT_CONTACT_CLIENT_ID,
    CONSTANT_CONTACT_CLIENT_SECRET,
    CONSTANT_CONTACT_FROM_EMAIL,
    CONSTANT_CONTACT_REFRESH_TOKEN,
    IMAGE_HOST,
    SECURITY_HEADERS_ENABLED,
    SQUARE_ACCESS_TOKEN,
    SQUARE_APPLICATION_ID,
    SQUARE_LOCATION_ID,
)
from .domain.billing.router import router as billing_router
from .domain.listing.router import router as drafts_router
from .domain.listing.wizard import InvalidTransitionError, StepValidationError
from .routes.auth import router as auth_router
from .routes.constant_contact import router as constant_contact_router
from .routes.email import router as email_router
from .routes.upload import router as upload_router
from .security_headers import SecurityHeadersMiddleware
from .services.constant_contact_service import NotAuthenticatedError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def missing_settings() -> list[str]:
    """Names of platform credentials that are not configured"""
    required = {
        "CONSTANT_CONTACT_CLIENT_ID": CONSTANT_CONTACT_CLIENT_ID,
        "CONSTANT_CONTACT_CLIENT_SECRET": CONSTANT_CONTACT_CLIENT_SECRET,
        "CONSTANT_CONTACT_FROM_EMAIL": CONSTANT_CONTACT_FROM_EMAIL,
        "SQUARE_ACCESS_TOKEN": SQUARE_ACCESS_TOKEN,
        "SQUARE_APPLICATION_ID": SQUARE_APPLICATION_ID,
        "SQUARE_LOCATION_ID": SQUARE_LOCATION_ID,
    }
    return [name for name, value in required.items() if not value]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    for name in missing_settings():
        logger.warning(f"⚠️ {name} is not set - related routes will fail")
    if not CONSTANT_CONTACT_REFRESH_TOKEN:
        logger.warning("⚠️ No Constant Contact refresh token - visit /auth/constantcontact to connect")
    logger.info(f"Image host: {IMAGE_HOST}")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Deal Dispo Email Builder API", version="1.0.0", lifespan=lifespan)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


@app.exception_handler(StepValidationError)
async def step_validation_handler(request: Request, exc: StepValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "step": exc.step.value, "fields": exc.fields},
    )


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    logger.warning(f"Constant Contact not connected: {request.url.path}")
    return JSONResponse(
        status_code=401,
        content={"error": "Not authenticated with Constant Contact", "details": str(exc)},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Retry-After"],
)

# Routes
app.include_router(auth_router)
app.include_router(constant_contact_router)
app.include_router(drafts_router)
app.include_router(upload_router)
app.include_router(email_router)
app.include_router(billing_router)


@app.get("/")
def root():
    return {"message": "Deal Dispo Email Builder API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
