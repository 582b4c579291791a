# chi_scan/main.py
import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .analyzers import ImageDecodeError, sample_room_colors
from .config import Settings, get_settings, load_settings
from .elements import DIRECTION_ELEMENTS, ELEMENT_ADDITIONS
from .log import configure_logging
from .scoring import MISSING_FIELDS_MSG, InvalidRequest, analyze_colors, validate_direction

logger = logging.getLogger(__name__)

TOO_LARGE_MSG = "File too large (max 10MB)"
METHOD_NOT_ALLOWED_MSG = "Method not allowed"


class AnalyzeRequest(BaseModel):
    colors: Optional[List[str]] = None
    direction: Optional[str] = None


def error_response(message, status_code=400):
    return JSONResponse(content={"error": message}, status_code=status_code)


async def read_upload(file: UploadFile, settings: Settings):
    # read one byte past the limit so oversize uploads are detected without buffering them whole
    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        return None
    return content


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(title="Chi Scan - Feng Shui Analyzer")
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = METHOD_NOT_ALLOWED_MSG if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(content={"error": message}, status_code=exc.status_code,
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.info("rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return error_response(MISSING_FIELDS_MSG)

    @app.exception_handler(InvalidRequest)
    async def invalid_request(request: Request, exc: InvalidRequest):
        logger.info("rejected %s %s: %s", request.method, request.url.path, exc)
        return error_response(str(exc))

    @app.exception_handler(ImageDecodeError)
    async def undecodable_image(request: Request, exc: ImageDecodeError):
        logger.info("rejected upload on %s: %s", request.url.path, exc)
        return error_response(str(exc))

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/api/analyze")
    async def analyze(body: AnalyzeRequest):
        result = analyze_colors(body.colors, body.direction)
        return JSONResponse(content=result.to_response())

    @app.post("/api/extract-colors")
    async def extract_colors(file: UploadFile = File(...), settings: Settings = Depends(get_settings)):
        content = await read_upload(file, settings)
        if content is None:
            return error_response(TOO_LARGE_MSG, status_code=413)
        return JSONResponse(content={"colors": sample_room_colors(content, settings)})

    @app.post("/api/analyze-image")
    async def analyze_image(
        file: UploadFile = File(...),
        direction: str = Form(...),
        settings: Settings = Depends(get_settings),
    ):
        """
        Upload a room photo plus the direction it faces; samples the dominant
        colors and scores them in one call. Response is the /api/analyze body
        plus the sampled ``colors``.
        """
        validate_direction(direction)
        content = await read_upload(file, settings)
        if content is None:
            return error_response(TOO_LARGE_MSG, status_code=413)
        colors = sample_room_colors(content, settings)
        result = analyze_colors(colors, direction)
        body = result.to_response()
        body["colors"] = colors
        return JSONResponse(content=body)

    @app.get("/api/directions")
    async def get_directions():
        """Direction -> element table and the per-element suggestions, for the direction picker."""
        return JSONResponse(content={
            "directions": {d: el.value for d, el in DIRECTION_ELEMENTS.items()},
            "suggestions": {el.value: text for el, text in ELEMENT_ADDITIONS.items()},
        })

    return app


app = create_app()
