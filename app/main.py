import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import slots, whatsapp
from app.core.clock import get_clock
from app.core.config import settings, _ENV_FILE
from app.core.db import async_session_maker, init_db
from app.services.appointment_service import delete_appointments_older_than
from app.services.command_service import CommandInterpreter
from app.services.notifier import WhatsAppNotifier
from app.services.reminder_scheduler import ReminderScheduler

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 24 * 60 * 60  # 24 hours


async def _run_appointment_cleanup() -> None:
    """Delete appointments dated more than appointment_retention_days ago."""
    try:
        async with async_session_maker() as session:
            try:
                n = await delete_appointments_older_than(
                    session, settings.appointment_retention_days, get_clock().today()
                )
                await session.commit()
                if n:
                    logger.info(
                        "Appointment cleanup: deleted %d record(s) older than %d days",
                        n,
                        settings.appointment_retention_days,
                    )
            except Exception:
                await session.rollback()
                raise
    except Exception as e:
        logger.exception("Appointment cleanup failed: %s", e)


async def _cleanup_loop() -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        await _run_appointment_cleanup()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if settings.auto_create_tables:
        await init_db()

    clock = get_clock()
    notifier = WhatsAppNotifier.from_settings()
    if not notifier.enabled:
        logger.warning("Twilio: NOT configured. Reminders will be logged but not sent. Set TWILIO_* in %s", _ENV_FILE)
    scheduler = ReminderScheduler(
        notifier,
        clock,
        async_session_maker,
        lead_minutes=settings.reminder_lead_minutes,
        stale_grace_minutes=settings.reminder_stale_grace_minutes,
    )
    app.state.clock = clock
    app.state.scheduler = scheduler
    app.state.interpreter = CommandInterpreter(scheduler, clock)

    # Startup: timers are in-memory only, so rebuild today's and tomorrow's
    try:
        await scheduler.restore_from_store()
    except Exception as e:
        logger.exception("Reminder restore failed: %s", e)
    await _run_appointment_cleanup()
    # Background: run every 24h
    task = asyncio.create_task(_cleanup_loop())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    scheduler.shutdown()
    await notifier.aclose()


app = FastAPI(
    title="Jewelry Desk API",
    description="WhatsApp bot backend: appointments, reminders and order intake",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(slots.router, prefix="/api/v1")
app.include_router(whatsapp.router, prefix="/api/v1")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
    origin = request.headers.get("origin")
    headers = _cors_headers(origin)
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )
    logger.exception("Unhandled exception: %s", exc)
    detail = f"{type(exc).__name__}: {str(exc)}"
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
        headers=headers,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
