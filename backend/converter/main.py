"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from converter import config as app_config
from converter.api.routes import router
from converter.config import CORS_ORIGINS, logger as config_logger
from converter.conversion.service import get_conversion_engine
from converter.errors import ConversionError, ConverterError

logging.getLogger("uvicorn").setLevel(logging.INFO)
logger = logging.getLogger("converter.api")


async def sweep_expired_artifacts(ttl_seconds: int, interval_seconds: int) -> None:
    """Periodically evict converted artifacts older than ttl_seconds."""
    engine = get_conversion_engine()
    while True:
        try:
            await asyncio.to_thread(engine.purge_expired_artifacts, ttl_seconds, app_config.OUTPUT_DIR)
        except Exception as e:
            logger.exception("Artifact sweep failed: %s", e)
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = None
    if app_config.ARTIFACT_TTL_SECONDS > 0:
        sweeper = asyncio.create_task(
            sweep_expired_artifacts(app_config.ARTIFACT_TTL_SECONDS, app_config.ARTIFACT_SWEEP_INTERVAL_SECONDS)
        )
        config_logger.info("Artifact eviction enabled (ttl=%ss)", app_config.ARTIFACT_TTL_SECONDS)
    config_logger.info("Converter API started (uploads=%s, downloads=%s)", app_config.UPLOAD_DIR, app_config.OUTPUT_DIR)
    yield
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    config_logger.info("Converter API shutting down")


app = FastAPI(
    title="Image Converter API",
    description="Convert uploaded images to png, jpg, gif, bmp, webp, ico or tiff and download the result.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConverterError)
async def converter_error_handler(request: Request, exc: ConverterError):
    """Report pipeline errors as plain text with the status their class carries."""
    if isinstance(exc, ConversionError):
        message = f"Conversion failed: {exc}"
        logger.error("%s %s -> %s", request.method, request.url.path, message)
    else:
        message = str(exc)
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, message)
    return PlainTextResponse(message, status_code=exc.status_code)


app.include_router(router)


def run() -> None:
    import uvicorn
    from converter.config import HOST, PORT
    uvicorn.run("converter.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
