import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio.api.router import api_router
from portfolio.core.config import Settings, settings as default_settings
from portfolio.core.errors import PortfolioError, format_gb
from portfolio.core.logging import get_logger, setup_logging
from portfolio.services.chunked import ChunkAssembler
from portfolio.services.content import ContentStore
from portfolio.services.disk_space import estimate_free_space
from portfolio.services.session import SessionGuard
from portfolio.services.uploads import UploadOrchestrator

log = get_logger("portfolio")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortfolioError)
    async def portfolio_error(request: Request, exc: PortfolioError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and request.url.path.startswith("/api"):
            return _error(404, "Resource not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error(400, f"Invalid request: {detail}")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("starting_up", service=settings.PROJECT_NAME)
        settings.upload_root.mkdir(parents=True, exist_ok=True)
        settings.chunk_root.mkdir(parents=True, exist_ok=True)
        log.info(
            "startup_complete",
            upload_root=str(settings.upload_root),
            data_path=str(settings.data_path),
        )
        yield
        log.info("shutting_down")

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    orchestrator = UploadOrchestrator(settings)
    app.state.settings = settings
    app.state.session_guard = SessionGuard.from_settings(settings)
    app.state.orchestrator = orchestrator
    app.state.assembler = ChunkAssembler(orchestrator)
    app.state.content_store = ContentStore(settings.data_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    app.include_router(api_router)

    @app.get("/health")
    async def health():
        checks = {}

        # Upload root
        root = settings.upload_root
        checks["uploads"] = "ok" if root.is_dir() and os.access(root, os.W_OK) else "error: not writable"

        # Content document
        data_path = settings.data_path
        if data_path.exists():
            checks["content"] = "ok" if os.access(data_path, os.R_OK) else "error: not readable"
        else:
            checks["content"] = "ok"

        # Free space
        free = estimate_free_space(root)
        checks["disk"] = "unknown" if free is None else "ok"

        all_ok = all(v in ("ok", "unknown") for v in checks.values())
        return {
            "status": "healthy" if all_ok else "degraded",
            "service": settings.PROJECT_NAME,
            "checks": checks,
            "free_gb": None if free is None else format_gb(free),
        }

    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.upload_root, check_dir=False),
        name="uploads",
    )
    return app


setup_logging(default_settings.LOG_LEVEL, default_settings.LOG_JSON)
app = create_app()
