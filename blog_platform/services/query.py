"""
Post query and pagination engine.

A request is a PostFilter plus a PageRequest. The same contract runs in two
places: `query_posts` evaluates it in memory over any iterable of post-like
objects, and `run_query` pushes it down into SQL. Both count every match,
order by publication date (newest first, unpublished last), then slice one
page out of the ordered result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from blog_platform.db.models import Post, PostTag

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 1000

T = TypeVar("T")


@dataclass(frozen=True)
class PostFilter:
    """Search, tag and publication constraints, combined with AND."""

    search: Optional[str] = None
    tags: tuple[str, ...] = ()
    published: Optional[bool] = None

    @classmethod
    def build(
        cls,
        search: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        published: Optional[bool] = None,
    ) -> "PostFilter":
        """Normalize raw request values: blank search and blank tags are dropped."""
        search = search.strip() if search else None
        cleaned = tuple(dict.fromkeys(t.strip() for t in (tags or ()) if t and t.strip()))
        return cls(search=search or None, tags=cleaned, published=published)

    def matches(self, post: Any) -> bool:
        if self.search:
            needle = self.search.lower()
            fields = (post.title, post.content, getattr(post, "excerpt", None))
            if not any(value and needle in value.lower() for value in fields):
                return False

        if self.tags:
            if not set(self.tags).intersection(post.tags or ()):
                return False

        if self.published is not None and bool(post.published) != self.published:
            return False

        return True


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def normalize(cls, page: Optional[int] = None, page_size: Optional[int] = None) -> "PageRequest":
        """Clamp out-of-range values instead of rejecting them.

        page < 1 becomes 1, page_size < 1 falls back to the default and
        page_size is capped at MAX_PAGE_SIZE.
        """
        page = page if page and page > 0 else 1
        if not page_size or page_size < 1:
            page_size = DEFAULT_PAGE_SIZE
        return cls(page=page, page_size=min(page_size, MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class PageResult(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


# =============================================================================
# IN-MEMORY EXECUTION
# =============================================================================

def sort_key(post: Any) -> tuple:
    """Key for an ascending sort that is then reversed.

    Records without a timestamp rank below every record that has one.
    """
    published_at: Optional[datetime] = post.published_at
    created_at: Optional[datetime] = post.created_at
    return (
        published_at is not None,
        published_at or datetime.min,
        created_at is not None,
        created_at or datetime.min,
    )


def order_posts(posts: Iterable[T]) -> list[T]:
    return sorted(posts, key=sort_key, reverse=True)


def paginate(ordered: Sequence[T], request: PageRequest) -> PageResult[T]:
    start = request.offset
    return PageResult(
        items=list(ordered[start:start + request.page_size]),
        total=len(ordered),
        page=request.page,
        page_size=request.page_size,
    )


def query_posts(
    posts: Iterable[T],
    post_filter: PostFilter,
    request: PageRequest,
) -> PageResult[T]:
    """Filter, order and slice an in-memory collection of posts."""
    matching = [post for post in posts if post_filter.matches(post)]
    return paginate(order_posts(matching), request)


# =============================================================================
# SQL EXECUTION
# =============================================================================

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_criteria(post_filter: PostFilter) -> list:
    """Translate a PostFilter into SQLAlchemy WHERE clauses."""
    criteria = []

    if post_filter.search:
        pattern = f"%{_escape_like(post_filter.search)}%"
        criteria.append(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                Post.content.ilike(pattern, escape="\\"),
                Post.excerpt.ilike(pattern, escape="\\"),
            )
        )

    if post_filter.tags:
        criteria.append(Post.tag_links.any(PostTag.name.in_(post_filter.tags)))

    if post_filter.published is not None:
        criteria.append(Post.published == post_filter.published)

    return criteria


def ordering() -> list:
    return [
        Post.published_at.desc().nullslast(),
        Post.created_at.desc().nullslast(),
        Post.id.desc(),
    ]


def run_query(db: Session, post_filter: PostFilter, request: PageRequest) -> PageResult[Post]:
    """Count and fetch one page of posts matching the filter."""
    query = db.query(Post)
    criteria = build_criteria(post_filter)
    if criteria:
        query = query.filter(and_(*criteria))

    total = query.count()
    result = PageResult(total=total, page=request.page, page_size=request.page_size)

    # Pages past the end are empty; their offset may not even fit in a SQL integer
    if request.offset >= total:
        return result

    result.items = (
        query.order_by(*ordering())
        .offset(request.offset)
        .limit(request.page_size)
        .all()
    )
    return result
