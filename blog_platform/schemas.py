"""
Request and response models for the JSON API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostCreate(BaseModel):
    title: str = ""
    content: str = ""
    excerpt: Optional[str] = ""
    featured_image: Optional[str] = ""
    tags: list[str] = Field(default_factory=list)
    published: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value):
        # Anything that is not a list of labels is treated as no tags
        if not isinstance(value, list):
            return []
        return [str(tag) for tag in value]


class PostUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: Optional[list[str]] = None
    published: Optional[bool] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value):
        if value is None:
            return None
        if not isinstance(value, list):
            return []
        return [str(tag) for tag in value]


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    content: str
    content_html: str = ""
    excerpt: str = ""
    featured_image: str = ""
    tags: list[str] = Field(default_factory=list)
    published: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def listify_tags(cls, value):
        return list(value or [])

    @field_validator("excerpt", "featured_image", "content_html", mode="before")
    @classmethod
    def empty_when_missing(cls, value):
        return value or ""


class PostPage(BaseModel):
    """One page of query results, keyed the way the browser client expects."""

    model_config = ConfigDict(populate_by_name=True)

    posts: list[PostOut]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    post_id: str
    image_url: str
    alt_text: str = ""
    caption: str = ""
    position: int = 0
    created_at: Optional[datetime] = None

    @field_validator("id", "post_id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)


class UploadOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    image_url: str = Field(alias="imageUrl")
    message: str = "Image uploaded successfully"


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
