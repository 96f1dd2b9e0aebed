from fastapi import Request

from portfolio.core.config import Settings
from portfolio.services.chunked import ChunkAssembler
from portfolio.services.content import ContentStore
from portfolio.services.uploads import UploadOrchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_admin(request: Request) -> None:
    """Reject the request with 401 before the handler reads the body."""
    request.app.state.session_guard.check_request(request)


def get_orchestrator(request: Request) -> UploadOrchestrator:
    return request.app.state.orchestrator


def get_assembler(request: Request) -> ChunkAssembler:
    return request.app.state.assembler


def get_content_store(request: Request) -> ContentStore:
    return request.app.state.content_store
