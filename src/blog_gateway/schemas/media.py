"""Media upload Pydantic schemas."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Result of a successful upload."""

    mediaId: str
    url: str | None = None
    key: str
    file_type: str
    file_size: int
