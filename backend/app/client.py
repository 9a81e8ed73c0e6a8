"""
Quillpost — API Client
========================

What:  Async HTTP client for the /api/blogs endpoints.
How:   Sends the request with httpx, checks the status, then unwraps the
       {success, data|error} envelope into Post models.
Who:   Scripts, integration checks and tests that drive the API the way the
       browser UI does.

Error rules:
    non-2xx response               → ApiClientError("Error fetching blog posts: <reason>")
    2xx with {"success": false}    → ApiClientError("API error: <error>")

Example:
    async with BlogClient("http://localhost:8000") as client:
        post = await client.create_blog_post(title="Hello", content="World")
        posts = await client.fetch_blog_posts()
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.exceptions import ApiClientError
from app.models.post import Post

logger = logging.getLogger(__name__)

BLOGS_PATH = "/api/blogs"


class BlogClient:
    """
    Client for the blog API.

    Use as an async context manager, or call close() when done. A custom
    httpx transport (e.g. httpx.ASGITransport) can be passed for in-process use.
    """

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        logger.debug("BlogClient initialized (base_url: %s)", self.base_url)

    async def __aenter__(self) -> "BlogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_blog_posts(self) -> List[Post]:
        """
        GET /api/blogs.

        Returns:
            Posts, newest first.

        Raises:
            ApiClientError: non-2xx status or an error envelope
        """
        response = await self._client.get(BLOGS_PATH)
        data = self._unwrap(response, "Error fetching blog posts")
        return [Post.model_validate(item) for item in data]

    async def create_blog_post(
        self,
        title: str,
        content: str,
        author_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        published: Optional[bool] = None,
    ) -> Post:
        """
        POST /api/blogs.

        Optional fields left as None are omitted from the body, so the server
        applies its own defaults.

        Raises:
            ApiClientError: non-2xx status or an error envelope
        """
        body: Dict[str, Any] = {"title": title, "content": content}
        if author_id is not None:
            body["authorId"] = author_id
        if tags is not None:
            body["tags"] = tags
        if published is not None:
            body["published"] = published

        response = await self._client.post(BLOGS_PATH, json=body)
        data = self._unwrap(response, "Error creating blog post")
        return Post.model_validate(data)

    @staticmethod
    def _unwrap(response: httpx.Response, failure_prefix: str) -> Any:
        if not response.is_success:
            logger.warning(
                "%s %s returned %d",
                response.request.method,
                response.request.url,
                response.status_code,
            )
            raise ApiClientError(
                message=f"{failure_prefix}: {response.reason_phrase}",
                status_code=response.status_code,
                context={"body": response.text[:500]},
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ApiClientError(
                message=f"{failure_prefix}: response is not valid JSON",
                status_code=response.status_code,
            ) from e

        if not isinstance(result, dict):
            raise ApiClientError(
                message=f"{failure_prefix}: unexpected response format",
                status_code=response.status_code,
            )

        if not result.get("success"):
            raise ApiClientError(
                message=f"API error: {result.get('error')}",
                status_code=response.status_code,
            )

        return result.get("data")
