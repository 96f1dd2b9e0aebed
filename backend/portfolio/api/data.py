from fastapi import APIRouter, Depends

from portfolio.api.deps import get_content_store, require_admin
from portfolio.core.errors import InvalidContent, PortfolioError
from portfolio.schemas.content import SectionUpdate
from portfolio.services.content import ContentStore

router = APIRouter(prefix="/data", tags=["content"])


@router.get("")
def get_content(store: ContentStore = Depends(get_content_store)):
    return store.load()


@router.post("", dependencies=[Depends(require_admin)])
def save_section(body: SectionUpdate, store: ContentStore = Depends(get_content_store)):
    """Replace one top-level section of the content document."""
    if not body.section or body.data is None:
        raise InvalidContent("Missing section or data")
    if not store.update_section(body.section, body.data):
        raise PortfolioError("Failed to save data")
    return {"success": True}
