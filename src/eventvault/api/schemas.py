"""Request bodies for the REST API. Field names follow the wire format (camelCase)."""

from typing import Any

from pydantic import BaseModel, Field


class PresignedUrlRequest(BaseModel):
    fileName: str
    fileType: str = ""
    fileSize: int = 0


class UploadMetadata(BaseModel):
    event: str = ""
    date: str = ""
    photographer: str = ""
    location: str = ""
    tags: list[str] = Field(default_factory=list)
    description: str = ""


class MetadataRequest(BaseModel):
    key: str
    originalFilename: str = ""
    publicUrl: str = ""
    fileType: str | None = None
    mimeType: str = ""
    size: int = 0
    metadata: UploadMetadata = Field(default_factory=UploadMetadata)

    def record_fields(self) -> dict[str, Any]:
        return {
            "filename": self.key,
            "original_filename": self.originalFilename or self.key,
            "url": self.publicUrl,
            "file_type": self.fileType,
            "mime_type": self.mimeType,
            "size": self.size,
            **self.metadata.model_dump(),
        }


class DiscardRequest(BaseModel):
    key: str


class DownloadRequest(BaseModel):
    filename: str = ""
    originalFilename: str | None = None
