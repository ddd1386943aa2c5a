"""
Video Converter Service.

FastAPI application that turns an uploaded video into an audio file or a
text transcript within the same request. It handles:
- Audio extraction with ffmpeg (mp3, wav, aac, flac, ogg).
- Speech-to-text with a local whisper model.
- One-time download of the speech model (and ffmpeg in cloud deployments).
- Distributed tracing with Datadog.
- Structured JSON logging.
"""

from contextlib import asynccontextmanager

import uvicorn
from converter_common import setup_logging
from ddtrace import patch_all
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dependencies import get_bootstrapper, get_config, get_transcoder, get_transcriber
from routes import converter_router

patch_all()
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    transcoder = get_transcoder()
    if not await transcoder.is_available():
        logger.warning(
            "FFmpeg is not found. Install FFmpeg for the API to work properly.",
            extra={"binary": transcoder.binary},
        )

    bootstrapper = get_bootstrapper()
    bootstrapper.start()
    logger.info("Service successfully initialized")
    yield
    await bootstrapper.shutdown()
    get_transcriber().close()


app = FastAPI(title="Video Converter Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Rejects oversized uploads before the multipart body is parsed."""
    max_bytes = get_config().limits.max_upload_bytes
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_bytes:
        logger.warning(
            "Request body too large",
            extra={"path": request.url.path, "content_length": int(content_length)},
        )
        return JSONResponse(status_code=413, content={"detail": "Request body too large"})
    return await call_next(request)


app.include_router(converter_router)


def main():
    """Runs the API with uvicorn."""
    config = get_config()
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
