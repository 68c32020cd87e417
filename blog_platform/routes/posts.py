"""
JSON API routes for posts and their images.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from blog_platform.config import Settings
from blog_platform.db.database import get_db
from blog_platform.db.models import Post
from blog_platform.errors import NotFoundError, ValidationError
from blog_platform.routes.uploads import get_settings, read_image_upload
from blog_platform.schemas import ImageOut, PostCreate, PostOut, PostPage, PostUpdate
from blog_platform.security import (
    bind_rate_limits,
    limiter,
    rate_limiting_disabled,
    require_admin,
    upload_limit,
)
from blog_platform.services import images as images_service
from blog_platform.services import posts as posts_service
from blog_platform.services.query import DEFAULT_PAGE_SIZE, PageRequest, PostFilter, run_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


def parse_id(raw: str, what: str = "id") -> int:
    """Identifiers are positive integers; anything else is a client error."""
    if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
        raise ValidationError(f"Invalid {what}")
    return int(raw)


def load_post(db: Session, raw_id: str) -> Post:
    post = posts_service.get_post(db, parse_id(raw_id))
    if not post:
        raise NotFoundError("Post not found")
    return post


def parse_position(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("Position must be an integer") from None


@router.get("", response_model=PostPage)
async def list_posts(
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = None,
    tags: Optional[list[str]] = Query(None),
    published: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    """Query posts with search, tag and publication filters, one page at a time."""
    post_filter = PostFilter.build(search=search, tags=tags, published=published)
    result = run_query(db, post_filter, PageRequest.normalize(page, page_size))

    return PostPage(
        posts=[PostOut.model_validate(post) for post in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/slug/{slug}", response_model=PostOut)
async def get_post_by_slug(slug: str, db: Session = Depends(get_db)):
    post = posts_service.get_post_by_slug(db, slug)
    if not post:
        raise NotFoundError("Post not found")
    return PostOut.model_validate(post)


@router.get("/{post_id}", response_model=PostOut)
async def get_post(post_id: str, db: Session = Depends(get_db)):
    return PostOut.model_validate(load_post(db, post_id))


@router.post(
    "",
    response_model=PostOut,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_post(data: PostCreate, db: Session = Depends(get_db)):
    post = posts_service.create_post(db, data)
    return PostOut.model_validate(post)


@router.put(
    "/{post_id}",
    response_model=PostOut,
    dependencies=[Depends(require_admin)],
)
async def update_post(post_id: str, changes: PostUpdate, db: Session = Depends(get_db)):
    post = posts_service.update_post(db, load_post(db, post_id), changes)
    return PostOut.model_validate(post)


@router.delete(
    "/{post_id}",
    status_code=204,
    response_class=Response,
    dependencies=[Depends(require_admin)],
)
async def delete_post(
    post_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    posts_service.delete_post(db, load_post(db, post_id), upload_dir=settings.upload_dir)
    return Response(status_code=204)


# =============================================================================
# IMAGES
# =============================================================================

@router.post(
    "/{post_id}/images",
    response_model=ImageOut,
    status_code=201,
    dependencies=[Depends(require_admin), Depends(bind_rate_limits)],
)
@limiter.limit(upload_limit, exempt_when=rate_limiting_disabled)
async def add_post_image(
    request: Request,
    post_id: str,
    image: Optional[UploadFile] = File(None),
    alt_text: Optional[str] = Form(None),
    caption: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Process an uploaded image and attach it to an existing post."""
    post = load_post(db, post_id)
    data = await read_image_upload(image, settings)
    slot = parse_position(position)

    image_url = await run_in_threadpool(
        images_service.process_image, data, settings.upload_dir, image.filename
    )
    record = images_service.add_image(
        db, post, image_url, alt_text=alt_text, caption=caption, position=slot
    )
    return ImageOut.model_validate(record)


@router.get("/{post_id}/images", response_model=list[ImageOut])
async def list_post_images(post_id: str, db: Session = Depends(get_db)):
    images = images_service.list_images(db, parse_id(post_id))
    return [ImageOut.model_validate(image) for image in images]


@router.delete(
    "/{post_id}/images/{image_id}",
    status_code=204,
    response_class=Response,
    dependencies=[Depends(require_admin)],
)
async def delete_post_image(
    post_id: str,
    image_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    image = images_service.get_image(db, parse_id(post_id), parse_id(image_id, "image id"))
    if not image:
        raise NotFoundError("Image not found")
    images_service.delete_image(db, image, upload_dir=settings.upload_dir)
    return Response(status_code=204)
