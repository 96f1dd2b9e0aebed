from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    success: bool = True
    url: str
    filename: str
    size: int
    type: str
    size_mb: str = Field(alias="sizeMB")

    model_config = {"populate_by_name": True}


class ChunkAck(BaseModel):
    success: bool = True
    message: str
    upload_id: str = Field(alias="uploadId")

    model_config = {"populate_by_name": True}


class ChunkComplete(BaseModel):
    success: bool = True
    url: str
    file_name: str = Field(alias="fileName")
    upload_id: str = Field(alias="uploadId")
    size: int

    model_config = {"populate_by_name": True}


class ThumbnailResponse(BaseModel):
    success: bool = True
    path: str
