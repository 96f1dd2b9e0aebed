from portfolio.schemas.auth import LoginRequest, SessionStatus
from portfolio.schemas.content import PortfolioDocument, SectionUpdate
from portfolio.schemas.upload import ChunkAck, ChunkComplete, ThumbnailResponse, UploadResponse

__all__ = [
    "LoginRequest",
    "SessionStatus",
    "PortfolioDocument",
    "SectionUpdate",
    "UploadResponse",
    "ChunkAck",
    "ChunkComplete",
    "ThumbnailResponse",
]
