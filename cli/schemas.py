"""Pydantic schemas for upload API payloads."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.types import Category, RemoteFileRecord, UploadResult


class UploadResponse(BaseModel):
    """Response model for POST /upload."""
    key: str
    url: str

    def to_result(self) -> UploadResult:
        return UploadResult(key=self.key, url=self.url)


class FileResponse(BaseModel):
    """One file in GET /files."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    url: str
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailUrl")
    size: Optional[int] = None
    uploaded: Optional[datetime] = None
    categories: List[str] = Field(default_factory=list)
    original_name: Optional[str] = Field(default=None, alias="originalName")

    def to_record(self) -> RemoteFileRecord:
        return RemoteFileRecord(
            key=self.key,
            url=self.url,
            thumbnail_url=self.thumbnail_url or self.url,
            size=self.size,
            uploaded_at=self.uploaded,
            categories=tuple(self.categories),
            original_name=self.original_name,
        )


class ListFilesResponse(BaseModel):
    """Response model for GET /files."""
    files: List[FileResponse] = Field(default_factory=list)
    count: Optional[int] = None


class GalleryOrderPayload(BaseModel):
    """Body of GET and PUT /gallery-order."""
    order: List[str] = Field(default_factory=list)


class CategoryResponse(BaseModel):
    """One category."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    is_default: bool = Field(default=False, alias="isDefault")

    def to_category(self) -> Category:
        return Category(id=self.id, title=self.title, is_default=self.is_default)


class CategoryListResponse(BaseModel):
    """Response model for GET /categories."""
    categories: List[CategoryResponse] = Field(default_factory=list)


class CategoryEnvelope(BaseModel):
    """Response model for POST /categories."""
    category: CategoryResponse


class CategoryOrderPayload(BaseModel):
    """Body of PUT /categories/order."""
    order: List[str]


class ErrorResponse(BaseModel):
    """Error body returned on non-2xx responses."""
    error: Optional[str] = None
    detail: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return self.error or self.detail
