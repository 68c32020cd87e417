"""Async client for the blog platform API.

Mirrors the HTTP routes one method per endpoint. When constructed with
``fallback_to_fixtures=True`` the read methods answer from the bundled
sample posts instead of raising when the API is unreachable or returns
an error. Write methods always raise.
"""

import logging
from typing import Any, Iterable, Optional

import httpx

from blog_platform.fixtures import load_fixture_posts
from blog_platform.schemas import ImageOut, PostOut
from blog_platform.services.posts import generate_slug
from blog_platform.services.query import DEFAULT_PAGE_SIZE, PageRequest, PostFilter, query_posts

logger = logging.getLogger(__name__)

ALL_POSTS_PAGE_SIZE = 1000


class BlogClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BlogClient:
    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        token: Optional[str] = None,
        fallback_to_fixtures: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.fallback_to_fixtures = fallback_to_fixtures
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BlogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    generate_slug = staticmethod(generate_slug)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise BlogClientError(f"{method} {url} failed: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("error", response.reason_phrase)
            except ValueError:
                message = response.reason_phrase
            raise BlogClientError(
                f"{method} {url} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        return response

    def _degrade(self, what: str, error: BlogClientError) -> bool:
        """Whether to answer a failed read from fixtures."""
        if not self.fallback_to_fixtures:
            return False
        logger.warning(f"Error fetching {what}, serving fixture data: {error}")
        return True

    # =========================================================================
    # READS
    # =========================================================================

    async def get_posts(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        published: Optional[bool] = None,
    ) -> dict[str, Any]:
        """One page of posts: {posts, total, page, pageSize, totalPages}."""
        params: list[tuple[str, Any]] = [("page", page), ("pageSize", page_size)]
        if search:
            params.append(("search", search))
        for tag in tags or ():
            params.append(("tags", tag))
        if published is not None:
            params.append(("published", "true" if published else "false"))

        try:
            response = await self._request("GET", "/posts", params=params)
        except BlogClientError as e:
            if not self._degrade("posts", e):
                raise
            return self._fixture_page(page, page_size, search, tags, published)

        data = response.json()
        data["posts"] = [PostOut.model_validate(post) for post in data["posts"]]
        return data

    async def get_post_by_slug(self, slug: str) -> Optional[PostOut]:
        """The post with this slug, or None if there is none."""
        try:
            response = await self._request("GET", f"/posts/slug/{slug}")
        except BlogClientError as e:
            if e.status_code == 404:
                return None
            if not self._degrade(f"post '{slug}'", e):
                raise
            return next((p for p in load_fixture_posts() if p.slug == slug), None)

        return PostOut.model_validate(response.json())

    async def get_post(self, post_id: str) -> Optional[PostOut]:
        try:
            response = await self._request("GET", f"/posts/{post_id}")
        except BlogClientError as e:
            if e.status_code == 404:
                return None
            raise
        return PostOut.model_validate(response.json())

    async def get_all_posts(self) -> list[PostOut]:
        data = await self.get_posts(page_size=ALL_POSTS_PAGE_SIZE)
        return data["posts"]

    async def get_post_images(self, post_id: str) -> list[ImageOut]:
        try:
            response = await self._request("GET", f"/posts/{post_id}/images")
        except BlogClientError as e:
            if not self._degrade(f"images for post {post_id}", e):
                raise
            return []
        return [ImageOut.model_validate(image) for image in response.json()]

    async def health(self) -> dict[str, Any]:
        response = await self._request("GET", "/health")
        return response.json()

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_post(self, **fields) -> PostOut:
        response = await self._request("POST", "/posts", json=fields)
        return PostOut.model_validate(response.json())

    async def update_post(self, post_id: str, **changes) -> PostOut:
        response = await self._request("PUT", f"/posts/{post_id}", json=changes)
        return PostOut.model_validate(response.json())

    async def delete_post(self, post_id: str) -> None:
        await self._request("DELETE", f"/posts/{post_id}")

    async def upload_image(
        self, content: bytes, filename: str, content_type: str = "image/jpeg"
    ) -> str:
        """Upload a standalone image; returns its served URL."""
        files = {"image": (filename, content, content_type)}
        response = await self._request("POST", "/upload", files=files)
        return response.json()["imageUrl"]

    async def add_image_to_post(
        self,
        post_id: str,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
        alt_text: Optional[str] = None,
        caption: Optional[str] = None,
        position: Optional[int] = None,
    ) -> ImageOut:
        files = {"image": (filename, content, content_type)}
        form = {}
        if alt_text:
            form["alt_text"] = alt_text
        if caption:
            form["caption"] = caption
        if position is not None:
            form["position"] = str(position)

        response = await self._request(
            "POST", f"/posts/{post_id}/images", files=files, data=form
        )
        return ImageOut.model_validate(response.json())

    # =========================================================================
    # DEGRADED MODE
    # =========================================================================

    @staticmethod
    def _fixture_page(
        page: int,
        page_size: int,
        search: Optional[str],
        tags: Optional[Iterable[str]],
        published: Optional[bool],
    ) -> dict[str, Any]:
        request = PageRequest.normalize(page, page_size)
        result = query_posts(
            load_fixture_posts(),
            PostFilter.build(search=search, tags=tags, published=published),
            request,
        )
        return {
            "posts": result.items,
            "total": result.total,
            "page": result.page,
            "pageSize": result.page_size,
            "totalPages": result.total_pages,
        }
