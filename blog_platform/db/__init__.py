"""Database package for the blog platform."""

from blog_platform.db.database import Base, get_db, init_db, make_engine, make_session_factory
from blog_platform.db.models import Image, Post, PostTag

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "make_engine",
    "make_session_factory",
    "Image",
    "Post",
    "PostTag",
]
