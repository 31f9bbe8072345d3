from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

ReleaseStatus = Literal["draft", "published"]


class PlatformReleaseInput(BaseModel):
    platform: str = Field(..., min_length=1, max_length=50)
    architecture: str | None = Field(default=None, max_length=50)
    download_url: str = Field(..., min_length=1, validation_alias=AliasChoices("download_url", "downloadUrl"))
    file_size: int | None = Field(default=None, ge=0, validation_alias=AliasChoices("file_size", "fileSize"))
    status: ReleaseStatus | None = None
    is_critical: bool = Field(default=False, validation_alias=AliasChoices("is_critical", "isCritical"))
    minimum_version: str | None = Field(
        default=None, validation_alias=AliasChoices("minimum_version", "minimumVersion")
    )


class PublishReleaseRequest(BaseModel):
    """Either ``platforms`` or the single-platform fields (``platform`` + ``download_url``)."""

    model_config = {
        "json_schema_extra": {
            "example": {
                "version": "1.4.0",
                "release_notes": "Faster receipts",
                "platforms": [
                    {"platform": "win32", "architecture": "x64", "download_url": "https://example.com/app-1.4.0.exe"}
                ],
            }
        }
    }

    version: str = Field(..., min_length=1, max_length=50)
    release_notes: str = Field(..., min_length=1)
    platforms: list[PlatformReleaseInput] | None = None
    platform: str | None = None
    architecture: str | None = None
    download_url: str | None = Field(default=None, validation_alias=AliasChoices("download_url", "downloadUrl"))
    file_size: int | None = Field(default=None, ge=0, validation_alias=AliasChoices("file_size", "fileSize"))
    is_draft: bool = Field(default=False, validation_alias=AliasChoices("is_draft", "isDraft"))
    is_critical: bool = Field(default=False, validation_alias=AliasChoices("is_critical", "isCritical"))
    minimum_version: str | None = Field(
        default=None, validation_alias=AliasChoices("minimum_version", "minimumVersion")
    )


class AppVersionItem(BaseModel):
    id: str
    version: str
    platform: str
    architecture: str | None = None
    release_notes: str | None = None
    download_url: str | None = None
    file_size: int | None = None
    status: str
    is_critical: bool
    minimum_version: str | None = None
    is_latest: bool
    published_at: datetime | None = None
    created_at: datetime


class PublishReleaseResponse(BaseModel):
    success: bool
    message: str
    releases: list[AppVersionItem]
    trace_id: str


class CheckUpdatesRequest(BaseModel):
    platform: str = Field(..., min_length=1)
    current_version: str | None = Field(
        default=None, validation_alias=AliasChoices("current_version", "currentVersion")
    )


class CheckUpdatesResponse(BaseModel):
    success: bool = True
    has_update: bool
    current_version: str
    latest_version: AppVersionItem | None = None
    trace_id: str


class ReleaseListResponse(BaseModel):
    releases: list[AppVersionItem]
    trace_id: str
