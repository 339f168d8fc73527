import logging
from collections.abc import Awaitable
from collections.abc import Callable

from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Scope

from chatrelay.api.routes import router
from chatrelay.core.config import settings
from chatrelay.core.exceptions import ChatRelayError
from chatrelay.core.logging import setup_logging
from chatrelay.services.fallback import GenerationExhaustedError
from chatrelay.services.llm import LLMError

setup_logging()

app = FastAPI(title="chat-relay")

logger = logging.getLogger(__name__)

# StaticFiles sees paths relative to its mount, without the leading slash
API_PATH_PREFIX = router.prefix.strip("/") + "/"


class SPAStaticFiles(StaticFiles):
    """Static frontend that answers unknown paths with index.html so client-side routes resolve."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        # Unknown API paths keep their 404
        is_api = path.startswith(API_PATH_PREFIX)
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != status.HTTP_404_NOT_FOUND or is_api:
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == status.HTTP_404_NOT_FOUND and not is_api:
            return await super().get_response("index.html", scope)
        return response


@app.on_event("startup")
async def startup_event() -> None:
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set. API calls will fail until you configure it.")
    logger.info(
        "Application started: primary=%s x%d, secondary=%s x%d",
        settings.primary_model,
        settings.primary_attempts,
        settings.secondary_model,
        settings.secondary_attempts,
    )


@app.middleware("http")
async def limit_request_size(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.max_request_bytes:
        logger.warning("Rejected request to %s: body of %s bytes exceeds limit", request.url.path, content_length)
        return JSONResponse(
            {"error": f"Request body too large (limit {settings.max_request_bytes // (1024 * 1024)}MB)."},
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": exc.errors()},
        status_code=422,
    )


@app.exception_handler(GenerationExhaustedError)
async def generation_exception_handler(request: Request, exc: GenerationExhaustedError) -> JSONResponse:
    logger.error(f"Generation failed on {request.url.path}: {str(exc)}")
    return JSONResponse(
        {"error": f"All model calls failed for {request.url.path}. Likely model timeout or upstream outage. {str(exc)}"},
        status_code=500,
    )


@app.exception_handler(LLMError)
async def llm_exception_handler(_request: Request, exc: LLMError) -> JSONResponse:
    logger.error(f"LLM error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(ChatRelayError)
async def relay_exception_handler(_request: Request, exc: ChatRelayError) -> JSONResponse:
    logger.error(f"Application error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
if settings.static_dir.is_dir():
    app.mount("/", SPAStaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    logger.info("Static directory %s not found; serving API only", settings.static_dir)
