from fastapi import FastAPI, Request, Response, status, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect
from contextlib import asynccontextmanager
from bossboarding.config import settings
from bossboarding.exceptions import (
    AuthenticationError, IntegrationError, InvalidRequestError, InvalidStepError,
    NotFoundError, OnboardingCompletedError, StepIncompleteError, UnknownTaskError,
)
from bossboarding.repositories.customer_store import CustomerStore, build_store_factory
from bossboarding.middleware.auth import get_customer_store
from bossboarding.api import customers, onboarding, portal, admin, email, upload, reports
from bossboarding.onboarding.session import COMPLETED_MESSAGE, INVALID_LINK_MESSAGE, open_session
from bossboarding.utils.html_generator import generate_message_html, generate_onboarding_html
import os
import time
import asyncio
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def initialize_db_sync() -> None:
    from bossboarding.database import SessionLocal, connect_with_retry, init_models

    # Wait for the database to be reachable before trying create_all
    logger.info("Database warming up...")
    if not connect_with_retry(max_retries=15, delay=3):
        logger.critical("DATABASE UNREACHABLE: Background initialization failed.")
        return

    try:
        init_models()
        logger.info("Database schema is up to date.")

        db = SessionLocal()
        try:
            admin.bootstrap_admin(db)
        finally:
            db.close()
    except SQLAlchemyError as e:
        logger.error(f"SCHEMA ERROR: {e}")


async def initialize_db():
    """Background task to initialize DB without blocking app startup"""
    if settings.SKIP_DB_INIT:
        logger.info("Skipping database initialization (SKIP_DB_INIT set)")
        return

    await asyncio.to_thread(initialize_db_sync)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Database initialization runs in the background so the app starts
    serving health checks immediately.
    """
    app.state.start_time = time.time()

    logger.info("=" * 80)
    logger.info("REGISTERED ROUTES AT STARTUP:")
    for route in app.routes:
        if hasattr(route, 'path') and hasattr(route, 'methods'):
            logger.info(f"  {sorted(route.methods)} {route.path}")
    logger.info("=" * 80)

    init_task = asyncio.create_task(initialize_db())

    yield

    if not init_task.done():
        init_task.cancel()


app = FastAPI(
    title="BossBoarding",
    description="Customer onboarding for laundry equipment and payment systems",
    version="1.0.0",
    lifespan=lifespan
)
app.state.start_time = time.time()
app.state.store_factory = build_store_factory(settings.CUSTOMER_STORE)


# Error handlers: every API error body is {"error": message}

def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Invalid request",
        details=jsonable_errors(exc)
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(OnboardingCompletedError)
async def completed_handler(request: Request, exc: OnboardingCompletedError):
    return _error(status.HTTP_410_GONE, str(exc))


@app.exception_handler(StepIncompleteError)
async def step_incomplete_handler(request: Request, exc: StepIncompleteError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), step=exc.step, missing=exc.missing)


@app.exception_handler(InvalidStepError)
async def invalid_step_handler(request: Request, exc: InvalidStepError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


@app.exception_handler(UnknownTaskError)
async def unknown_task_handler(request: Request, exc: UnknownTaskError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), taskIds=exc.task_ids)


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    return _error(status.HTTP_401_UNAUTHORIZED, str(exc))


@app.exception_handler(IntegrationError)
async def integration_handler(request: Request, exc: IntegrationError):
    logger.error(f"Integration failure on {request.url.path}: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, str(exc))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(ClientDisconnect)
async def client_disconnect_handler(request: Request, exc: ClientDisconnect):
    logger.info(f"Client disconnected during {request.method} {request.url.path}")
    return Response(status_code=499)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"GLOBAL ERROR: {str(exc)}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(customers.router)
app.include_router(onboarding.router)
app.include_router(portal.router)
app.include_router(admin.router)
app.include_router(email.router)
app.include_router(upload.router)
app.include_router(reports.router)


@app.get("/api/health")
def health_check(request: Request, response: Response):
    """Health check endpoint"""
    from bossboarding.database import check_database_health

    db_health = check_database_health()

    # Give the database two minutes to come up before reporting unhealthy
    uptime = time.time() - request.app.state.start_time
    if not db_health and uptime > 120:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if (db_health or uptime <= 120) else "unhealthy",
        "version": "1.0.0",
        "database": "connected" if db_health else "disconnected",
        "customerStore": settings.CUSTOMER_STORE,
        "uptime": int(uptime)
    }


@app.get("/onboarding/{token}", response_class=HTMLResponse)
def onboarding_page(
    token: str,
    store: CustomerStore = Depends(get_customer_store)
):
    """Customer-facing wizard page behind an onboarding link"""
    try:
        customer, session = open_session(store, token)
    except NotFoundError:
        return HTMLResponse(
            content=generate_message_html("Invalid Link", INVALID_LINK_MESSAGE),
            status_code=status.HTTP_404_NOT_FOUND
        )
    except OnboardingCompletedError:
        return HTMLResponse(
            content=generate_message_html("Onboarding Complete", COMPLETED_MESSAGE),
            status_code=status.HTTP_410_GONE
        )

    payload = onboarding.session_response(session).model_dump(by_alias=True, mode="json")
    return HTMLResponse(content=generate_onboarding_html(payload, customer.business_name))


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
