import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ValidationError

try:
    from pdf_service.conversion import (
        ConversionError,
        ConversionService,
        RendererTimeoutError,
        ServiceBusyError,
    )
    from pdf_service.conversion.adapters import ChromiumRenderer, LocalStaging
except ImportError:
    # Allow running as a script: `python src/pdf_service/webapi.py`
    import sys as _sys
    from pathlib import Path as _Path
    _sys.path.append(str(_Path(__file__).resolve().parents[1]))  # add ./src to sys.path
    from pdf_service.conversion import (
        ConversionError,
        ConversionService,
        RendererTimeoutError,
        ServiceBusyError,
    )
    from pdf_service.conversion.adapters import ChromiumRenderer, LocalStaging

logger = logging.getLogger(__name__)

# Global configuration defaults
STAGING_DIR = Path(os.getenv("PDF_STAGING_DIR", "/tmp/pdf-conversion"))
CHROMIUM_BIN = os.getenv("CHROMIUM_BIN", "chromium-browser")
VIRTUAL_TIME_BUDGET_MS = int(os.getenv("VIRTUAL_TIME_BUDGET_MS", "5000"))
RENDER_TIMEOUT_SEC = float(os.getenv("RENDER_TIMEOUT_SEC", "60"))
MAX_CONCURRENT_RENDERS = int(os.getenv("MAX_CONCURRENT_RENDERS", "4"))
QUEUE_TIMEOUT_SEC = float(os.getenv("QUEUE_TIMEOUT_SEC", "30"))

SERVICE: ConversionService | None = None


class ConvertRequest(BaseModel):
    html: str | None = None
    title: str | None = None


def build_service() -> ConversionService:
    staging = LocalStaging(str(STAGING_DIR))
    renderer = ChromiumRenderer(
        CHROMIUM_BIN,
        virtual_time_budget_ms=VIRTUAL_TIME_BUDGET_MS,
        timeout=RENDER_TIMEOUT_SEC,
    )
    return ConversionService(
        staging=staging,
        renderer=renderer,
        max_concurrent=MAX_CONCURRENT_RENDERS,
        queue_timeout=QUEUE_TIMEOUT_SEC,
    )


def get_service() -> ConversionService:
    global SERVICE
    if SERVICE is None:
        SERVICE = build_service()
    return SERVICE


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = get_service()
    logger.info(
        "PDF service ready: staging=%s chromium=%s slots=%d timeout=%ss",
        STAGING_DIR, CHROMIUM_BIN, MAX_CONCURRENT_RENDERS, RENDER_TIMEOUT_SEC,
    )
    yield
    if service.in_flight:
        logger.warning("shutting down with %d render(s) in flight", service.in_flight)


app = FastAPI(
    title="HTML to PDF Service",
    version=os.getenv("PDF_SERVICE_VERSION", "0.1.0"),
    description="Renders HTML documents to PDF with a headless Chromium.",
    lifespan=lifespan,
)


@app.get("/health")
def health() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.post("/convert")
async def convert(request: Request) -> Response:
    """Render the posted HTML to a PDF and return it as an attachment.

    Expects a JSON body ``{"html": "...", "title": "..."}``; ``title`` is optional
    and currently not used for rendering.
    """
    # Decode by hand so malformed bodies get the 400 "Invalid JSON" contract
    # instead of FastAPI's 422 validation payload.
    try:
        payload = ConvertRequest.model_validate(json.loads(await request.body()))
    except (ValueError, RecursionError, ValidationError):
        return PlainTextResponse("Invalid JSON", status_code=status.HTTP_400_BAD_REQUEST)

    if not payload.html:
        return PlainTextResponse("HTML content is required", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        pdf_bytes = await get_service().convert(payload.html, payload.title)
    except ServiceBusyError as e:
        logger.warning("PDF generation rejected: %s", e)
        return PlainTextResponse(f"PDF service busy: {e}", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    except RendererTimeoutError as e:
        logger.error("PDF generation timed out: %s", e)
        return PlainTextResponse(f"PDF generation timed out: {e}", status_code=status.HTTP_504_GATEWAY_TIMEOUT)
    except ConversionError as e:
        logger.error("PDF generation failed: %s", e)
        return PlainTextResponse(
            f"PDF generation failed: {e}", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=document.pdf"},
    )


def run() -> None:
    """Run the ASGI server using uvicorn.

    Exposes the app at host:port (default 0.0.0.0:8081). Set PORT env var to override.
    """
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8081"))
    reload = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes", "on"}

    uvicorn.run("pdf_service.webapi:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()
