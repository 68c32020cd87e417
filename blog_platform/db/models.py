"""
SQLAlchemy models for the blog platform.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from blog_platform.db.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PostTag(Base):
    """One tag label attached to a post; `position` keeps display order."""
    __tablename__ = "post_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_post_tags_name", "name"),
        Index("idx_post_tags_post_id", "post_id"),
    )

    def __repr__(self):
        return f"<PostTag {self.name}>"


class Post(Base):
    """
    Blog post model.
    Slug uniqueness is enforced by the unique index, not by the services.
    """
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    content_html = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=False, default="")
    featured_image = Column(String(500), nullable=False, default="")
    published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    tag_links = relationship(
        "PostTag",
        order_by="PostTag.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    tags = association_proxy(
        "tag_links", "name", creator=lambda name: PostTag(name=name)
    )

    images = relationship(
        "Image",
        back_populates="post",
        order_by=lambda: [Image.position, Image.id],
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_posts_published_at", "published_at"),
        Index("idx_posts_published", "published"),
    )

    def __repr__(self):
        return f"<Post {self.slug}>"


class Image(Base):
    """Processed image attached to a post."""
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url = Column(String(500), nullable=False)
    alt_text = Column(String(500), nullable=False, default="")
    caption = Column(Text, nullable=False, default="")
    position = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    post = relationship("Post", back_populates="images")

    def __repr__(self):
        return f"<Image {self.image_url}>"
