import io
from datetime import datetime
from typing import Optional

from PIL import Image as PILImage


def make_image_bytes(size=(64, 48), fmt="PNG", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    PILImage.new("RGB", size, color).save(buffer, fmt)
    return buffer.getvalue()


def post_payload(title: str, content: str = "Some **content**", **extra) -> dict:
    return {"title": title, "content": content, **extra}


class FakePost:
    """Plain in-memory post for exercising the query engine without a database."""

    def __init__(
        self,
        title: str,
        content: str = "",
        excerpt: str = "",
        tags=(),
        published: bool = False,
        published_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ):
        self.title = title
        self.content = content
        self.excerpt = excerpt
        self.tags = list(tags)
        self.published = published
        self.published_at = published_at
        self.created_at = created_at or datetime(2024, 1, 1)

    def __repr__(self):
        return f"<FakePost {self.title}>"
