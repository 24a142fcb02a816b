# delivery/main.py

from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- environment before settings are read ---
load_dotenv()

from delivery.config import settings
from delivery.middleware.db_middleware import DBSessionMiddleware
from delivery.middleware.trace_middleware import TraceMiddleware
from delivery.services.notification import NotificationDispatcher
from delivery.utils.database import AsyncSessionLocal, init_db
from delivery.utils.errors import ServiceError
from delivery.utils.log import Log

# --- sync logger for start-up ---
boot_log = Log()
boot_log.log_info_sync(target="startup", message="main.py imported")

# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup")

    await init_db()
    boot_log.log_info_sync(target="startup", message="Database initialised")

    app.state.log = Log()
    app.state.notifier = NotificationDispatcher(
        AsyncSessionLocal,
        app.state.log,
        max_attempts=settings.NOTIFY_MAX_ATTEMPTS,
        retry_delay=settings.NOTIFY_RETRY_DELAY,
        queue_size=settings.NOTIFY_QUEUE_SIZE,
        dead_letter_size=settings.NOTIFY_DEAD_LETTER_SIZE,
    )
    app.state.notifier.start()
    await app.state.log.log_info(target="startup", message="Notification dispatcher started")

    yield

    # shutdown
    await app.state.notifier.stop()
    await app.state.log.log_info(target="shutdown", message="Stopping application")
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log closed")

# ────────────── FastAPI application ──────────────
app = FastAPI(title="Delivery Orders API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# request.state.db
app.add_middleware(DBSessionMiddleware)
# request.state.trace_id
app.add_middleware(TraceMiddleware)

# ────────────── Error responses ──────────────
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # detail goes to the log only
    data = {
        "path": request.url.path,
        "method": request.method,
        "trace_id": getattr(request.state, "trace_id", None),
        "exception": type(exc).__name__,
    }
    log = getattr(request.app.state, "log", None)
    if log is not None:
        await log.log_error("internal", str(exc), data)
    else:
        boot_log.log_error_sync("internal", str(exc), data)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# ────────────── Service endpoints ──────────────
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

# ────────────── Routers ──────────────
from delivery.routes import driver, notification, order, pricing

app.include_router(order.router, prefix="/api/orders", tags=["orders"])
app.include_router(driver.router, prefix="/api/drivers", tags=["drivers"])
app.include_router(notification.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(pricing.router, prefix="/api/pricing", tags=["pricing"])

# ────────────── uvicorn ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="uvicorn.run")
    uvicorn.run(
        "delivery.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level="info",
    )
