import logging
import os
from logging.handlers import RotatingFileHandler, SysLogHandler

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from webstats.config import get_settings
from webstats.ingest import decode_envelope, process_event
from webstats.schemas.event import MethodNotAllowed, TrackError, TrackResponse

APP_NAME = "webstats"


logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)

file_handler = RotatingFileHandler(
    get_settings().log_file, maxBytes=1_000_000, backupCount=5
)
file_handler.setLevel(logging.ERROR)

try:
    from systemd.journal import JournalHandler

    journal_handler = JournalHandler(SYSLOG_IDENTIFIER=APP_NAME)
except Exception:  # pragma: no cover - fallback when systemd is unavailable
    journal_handler = SysLogHandler(address="/dev/log")
journal_handler.setLevel(logging.ERROR)

formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
for handler in (file_handler, journal_handler):
    handler.setFormatter(formatter)
    logger.addHandler(handler)


CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

TRACKER_SCRIPT = os.path.join(os.path.dirname(__file__), "static", "tracker.js")

app = FastAPI(title=APP_NAME)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed(request: Request, exc: StarletteHTTPException) -> Response:
    # Methods the router itself rejects get the same body as the ingestion route.
    if exc.status_code == 405:
        return JSONResponse(MethodNotAllowed().model_dump(), status_code=405)
    return await http_exception_handler(request, exc)


@app.get("/healthz", response_class=PlainTextResponse)
def healthz() -> str:
    return "ok"


@app.get("/tracker.js")
def tracker_js() -> FileResponse:
    return FileResponse(TRACKER_SCRIPT, media_type="application/javascript")


@app.api_route(
    "/{path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
async def handle(request: Request) -> Response:
    """Ingest one analytics event posted by the browser snippet."""
    if request.method == "OPTIONS":
        return Response(content=b"", status_code=200, headers=PREFLIGHT_HEADERS)

    if request.method != "POST":
        return JSONResponse(MethodNotAllowed().model_dump(), status_code=405)

    logger.info("Received request: %s %s", request.method, request.url.path)
    try:
        envelope = decode_envelope(await request.body())
        document_id, timestamp = await process_event(
            envelope,
            request.headers,
            request.client.host if request.client else None,
        )
    except Exception as exc:
        logger.exception("Error processing analytics event")
        return JSONResponse(
            TrackError(error=str(exc)).model_dump(),
            status_code=500,
            headers=CORS_HEADERS,
        )

    return JSONResponse(
        TrackResponse(id=document_id, timestamp=timestamp).model_dump(),
        headers=CORS_HEADERS,
    )
