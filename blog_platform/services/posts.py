"""
Posts service for the blog platform.
CRUD operations, slug derivation and markdown rendering.
"""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import markdown
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_platform.db.models import Post, utcnow
from blog_platform.errors import SlugConflictError, ValidationError
from blog_platform.schemas import PostCreate, PostUpdate
from blog_platform.services.images import remove_image_file

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def generate_slug(title: str) -> str:
    """Derive a URL-safe slug from a title.

    >>> generate_slug("Hello, World!  2024")
    'hello-world-2024'
    """
    slug = _DISALLOWED.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def render_markdown(content: str) -> str:
    """Convert markdown to HTML."""
    md = markdown.Markdown(extensions=['extra', 'codehilite', 'toc'])
    return md.convert(content)


def parse_date(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """Parse a date value from frontmatter or JSON to datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return None


def _clean_tags(tags: Iterable[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(tag.strip() for tag in tags if tag and tag.strip()))


def _require_text(name: str, value: Optional[str]) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{name.capitalize()} is required")
    return value


def _slug_for(title: str) -> str:
    slug = generate_slug(title)
    if not slug:
        raise ValidationError("Title must contain at least one letter or digit")
    return slug


def is_slug_violation(error: IntegrityError) -> bool:
    """Whether the failed constraint is the unique index on posts.slug.

    SQLite reports "UNIQUE constraint failed: posts.slug"; server databases
    name the index (ix_posts_slug) in a duplicate-key message.
    """
    message = str(error.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return "posts.slug" in message or "ix_posts_slug" in message


def _commit(db: Session, post: Post) -> Post:
    """Commit, turning a unique-index violation on slug into a conflict."""
    slug = post.slug
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not is_slug_violation(e):
            logger.error(f"Integrity error saving post '{slug}': {e.orig}")
            raise
        logger.info(f"Slug conflict for '{slug}': {e.orig}")
        raise SlugConflictError(slug) from e
    db.refresh(post)
    return post


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_post(db: Session, post_id: int) -> Optional[Post]:
    """Get a post by ID."""
    return db.query(Post).filter(Post.id == post_id).first()


def get_post_by_slug(db: Session, slug: str) -> Optional[Post]:
    """Get a post by slug."""
    return db.query(Post).filter(Post.slug == slug).first()


# =============================================================================
# WRITE OPERATIONS
# =============================================================================

def create_post(db: Session, data: PostCreate) -> Post:
    """Create a new post."""
    title = _require_text("title", data.title)
    content = _require_text("content", data.content)
    now = utcnow()

    post = Post(
        title=title,
        slug=_slug_for(title),
        content=content,
        content_html=render_markdown(content),
        excerpt=data.excerpt or "",
        featured_image=data.featured_image or "",
        published=data.published,
        published_at=now if data.published else None,
        created_at=now,
        updated_at=now,
    )
    post.tags = _clean_tags(data.tags)

    db.add(post)
    _commit(db, post)

    logger.info(f"Created post {post.id} ({post.slug}), published={post.published}")
    return post


def update_post(db: Session, post: Post, changes: PostUpdate) -> Post:
    """Apply a partial update. Fields absent from the request are left alone."""
    fields: dict[str, Any] = changes.model_dump(exclude_unset=True)

    if fields.get("title") is not None:
        post.title = _require_text("title", fields["title"])
        post.slug = _slug_for(post.title)
    if fields.get("content") is not None:
        post.content = _require_text("content", fields["content"])
        post.content_html = render_markdown(post.content)
    if "excerpt" in fields:
        post.excerpt = fields["excerpt"] or ""
    if "featured_image" in fields:
        post.featured_image = fields["featured_image"] or ""
    if "tags" in fields:
        post.tags = _clean_tags(fields["tags"] or [])
    if fields.get("published") is not None:
        set_published(post, fields["published"])

    post.updated_at = utcnow()
    _commit(db, post)

    logger.info(f"Updated post {post.id}: {', '.join(sorted(fields)) or 'no fields'}")
    return post


def set_published(post: Post, published: bool) -> Post:
    """Toggle publication. published_at is stamped once and never cleared."""
    post.published = published
    if published and post.published_at is None:
        post.published_at = utcnow()
    return post


def delete_post(db: Session, post: Post, upload_dir: Optional[Path] = None) -> None:
    """Delete a post together with its images and their files."""
    post_id = post.id
    image_urls = [image.image_url for image in post.images]

    db.delete(post)
    db.commit()

    if upload_dir is not None:
        for image_url in image_urls:
            remove_image_file(upload_dir, image_url)

    logger.info(f"Deleted post {post_id} and {len(image_urls)} image(s)")


# =============================================================================
# FIXTURE IMPORT
# =============================================================================

def import_fixture_posts(db: Session, fixtures: Iterable[Any]) -> list[Post]:
    """Insert fixture posts whose slug is not already taken.

    Timestamps from the fixtures are kept as-is so the seeded data
    orders the same way it does in degraded mode.
    """
    created = []

    for fixture in fixtures:
        if get_post_by_slug(db, fixture.slug):
            logger.debug(f"Fixture '{fixture.slug}' already present, skipping")
            continue

        created_at = parse_date(fixture.created_at) or utcnow()
        post = Post(
            title=fixture.title,
            slug=fixture.slug,
            content=fixture.content,
            content_html=render_markdown(fixture.content),
            excerpt=fixture.excerpt or "",
            featured_image=fixture.featured_image or "",
            published=fixture.published,
            published_at=parse_date(fixture.published_at),
            created_at=created_at,
            updated_at=parse_date(fixture.updated_at) or created_at,
        )
        post.tags = _clean_tags(fixture.tags)
        db.add(post)
        created.append(_commit(db, post))

    logger.info(f"Imported {len(created)} fixture post(s)")
    return created
