from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData, UploadFile

from portfolio.api.deps import get_assembler, get_orchestrator, require_admin
from portfolio.core.errors import InvalidChunk
from portfolio.schemas.upload import ChunkAck, ChunkComplete, ThumbnailResponse, UploadResponse
from portfolio.services.chunked import ChunkAssembler, parse_chunk_fields
from portfolio.services.uploads import UploadOrchestrator, extract_file

router = APIRouter(prefix="/upload", tags=["uploads"], dependencies=[Depends(require_admin)])


def _field(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) else None


@router.post("", response_model=UploadResponse)
async def upload_file(
    request: Request,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
):
    async def _handle():
        async with request.form() as form:
            return await orchestrator.save(extract_file(form))

    stored = await orchestrator.run(_handle())
    return UploadResponse(
        url=stored.url,
        filename=stored.filename,
        size=stored.size,
        type=stored.content_type,
        size_mb=stored.size_mb,
    )


@router.post("/streaming", response_model=ChunkAck | ChunkComplete)
async def upload_chunk(
    request: Request,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
    assembler: ChunkAssembler = Depends(get_assembler),
):
    """Receive one slice of a client-chunked upload; the last slice assembles the file."""

    async def _handle():
        async with request.form() as form:
            chunk = form.get("file")
            chunk_request = parse_chunk_fields(
                _field(form, "chunkIndex"),
                _field(form, "totalChunks"),
                _field(form, "fileName"),
                _field(form, "uploadId"),
            )
            if not isinstance(chunk, UploadFile):
                raise InvalidChunk("Missing required fields")
            return await assembler.receive(chunk, chunk_request)

    receipt = await orchestrator.run(_handle())
    chunk_request = receipt.request
    if not receipt.complete:
        return ChunkAck(
            message=f"Chunk {chunk_request.index + 1}/{chunk_request.total} received",
            upload_id=chunk_request.upload_id,
        )
    return ChunkComplete(
        url=receipt.stored.url,
        file_name=receipt.stored.filename,
        upload_id=chunk_request.upload_id,
        size=receipt.stored.size,
    )


@router.post("/thumbnail", response_model=ThumbnailResponse)
async def upload_thumbnail(
    request: Request,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
):
    async def _handle():
        async with request.form() as form:
            return await orchestrator.save_thumbnail(extract_file(form))

    stored = await orchestrator.run(
        _handle(), timeout=orchestrator.settings.THUMBNAIL_TIMEOUT_SECONDS
    )
    return ThumbnailResponse(path=stored.url)
