"""
Bundled sample posts.

Each file is Markdown with YAML frontmatter. They back the client's
degraded mode and the `seed` command.
"""

from functools import lru_cache
from pathlib import Path

import frontmatter

from blog_platform.schemas import PostOut
from blog_platform.services.posts import parse_date, render_markdown

FIXTURES_DIR = Path(__file__).parent


def load_fixture_file(file_path: Path) -> PostOut:
    with open(file_path, 'r', encoding='utf-8') as f:
        fm_post = frontmatter.load(f)

    meta = fm_post.metadata
    slug = meta.get('slug') or file_path.stem
    return PostOut(
        id=meta.get('id', slug),
        title=meta.get('title', slug.replace('-', ' ').title()),
        slug=slug,
        content=fm_post.content,
        content_html=render_markdown(fm_post.content),
        excerpt=meta.get('excerpt'),
        featured_image=meta.get('featured_image'),
        tags=meta.get('tags') or [],
        published=bool(meta.get('published', False)),
        published_at=parse_date(meta.get('published_at')),
        created_at=parse_date(meta.get('created_at')),
        updated_at=parse_date(meta.get('updated_at')),
    )


@lru_cache(maxsize=None)
def _load_all(directory: Path) -> tuple[PostOut, ...]:
    return tuple(load_fixture_file(path) for path in sorted(directory.glob('*.md')))


def load_fixture_posts(directory: Path = FIXTURES_DIR) -> list[PostOut]:
    """All fixture posts in `directory`, as fresh copies."""
    return [post.model_copy(deep=True) for post in _load_all(directory)]
