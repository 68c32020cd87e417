"""
Image processing and storage for post images.

Uploads are decoded with Pillow, shrunk to fit inside MAX_DIMENSIONS
(never enlarged), re-encoded as JPEG and written to the upload directory.
"""

import io
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Optional

from PIL import Image as PILImage, ImageOps, UnidentifiedImageError
from sqlalchemy import func
from sqlalchemy.orm import Session

from blog_platform.db.models import Image, Post
from blog_platform.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_DIMENSIONS = (1200, 800)
JPEG_QUALITY = 85
UPLOAD_URL_PREFIX = "/uploads/"

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_-]+")


def processed_filename(original_name: Optional[str]) -> str:
    """Generated, collision-free filename that keeps a hint of the original."""
    stem = _UNSAFE_FILENAME.sub("-", Path(original_name or "").stem).strip("-")[:60]
    unique = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
    return f"processed_{unique}_{stem or 'image'}.jpg"


def process_image(data: bytes, upload_dir: Path, original_name: Optional[str] = None) -> str:
    """Resize, compress and persist an uploaded image.

    Returns the relative URL the file is served under.
    Raises ValidationError if the bytes are not a decodable image.
    """
    try:
        with PILImage.open(io.BytesIO(data)) as source:
            source.load()
            image = ImageOps.exif_transpose(source)
            image.thumbnail(MAX_DIMENSIONS)
            if image.mode != "RGB":
                image = image.convert("RGB")
    except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError) as e:
        logger.warning(f"Rejected undecodable upload {original_name!r}: {e}")
        raise ValidationError("Only image files are allowed") from e

    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = processed_filename(original_name)
    image.save(upload_dir / filename, "JPEG", quality=JPEG_QUALITY, optimize=True)

    logger.info(f"Stored processed image {filename} ({image.width}x{image.height})")
    return f"{UPLOAD_URL_PREFIX}{filename}"


def remove_image_file(upload_dir: Path, image_url: str) -> None:
    """Delete the file behind an /uploads/ URL, if it is still there."""
    if not image_url.startswith(UPLOAD_URL_PREFIX):
        return
    file_path = upload_dir / Path(image_url[len(UPLOAD_URL_PREFIX):]).name
    try:
        file_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove image file {file_path}: {e}")


# =============================================================================
# IMAGE RECORDS
# =============================================================================

def next_position(db: Session, post_id: int) -> int:
    highest = db.query(func.max(Image.position)).filter(Image.post_id == post_id).scalar()
    return 0 if highest is None else highest + 1


def add_image(
    db: Session,
    post: Post,
    image_url: str,
    alt_text: Optional[str] = None,
    caption: Optional[str] = None,
    position: Optional[int] = None,
) -> Image:
    """Attach an image to a post, appending it after the others by default."""
    if position is None:
        position = next_position(db, post.id)

    image = Image(
        post_id=post.id,
        image_url=image_url,
        alt_text=alt_text or "",
        caption=caption or "",
        position=position,
    )
    db.add(image)
    db.commit()
    db.refresh(image)

    logger.info(f"Added image {image.id} to post {post.id} at position {position}")
    return image


def list_images(db: Session, post_id: int) -> list[Image]:
    """Images of a post in display order."""
    return (
        db.query(Image)
        .filter(Image.post_id == post_id)
        .order_by(Image.position.asc(), Image.id.asc())
        .all()
    )


def get_image(db: Session, post_id: int, image_id: int) -> Optional[Image]:
    return (
        db.query(Image)
        .filter(Image.post_id == post_id, Image.id == image_id)
        .first()
    )


def delete_image(db: Session, image: Image, upload_dir: Optional[Path] = None) -> None:
    image_url = image.image_url
    db.delete(image)
    db.commit()

    if upload_dir is not None:
        remove_image_file(upload_dir, image_url)
