"""
Quillpost Backend — Pydantic Request/Response Schemas
=======================================================

What:  The API contract for /api/blogs: the validated create payload and the
       {success, data|error} envelopes wrapping every response.
How:   PostCreate.from_body() applies the create rules to a raw JSON body;
       the envelope models are used as FastAPI response models.
Who:   Used by route handlers, exception handlers, and app.client.

Envelopes:
    Success:  {"success": true,  "data": <Post | Post[]>}
    Failure:  {"success": false, "error": "<message>"}
"""

import json
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.exceptions import ValidationError
from app.models.post import Post

REQUIRED_FIELDS_MESSAGE = "title and content are required"


def to_text(value: Any) -> str:
    """
    Render a decoded JSON value as text the way a JavaScript client would.

    None, True and 2.0 become "null", "true" and "2", not Python's
    "None", "True" and "2.0". Arrays and objects are rendered as compact JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value, separators=(",", ":"))


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    """
    What:  Coerced attributes for a new post.
    Who:   Built by POST /api/blogs from the request body, passed to
           PostRepository.create_post().

    Coercion rules (applied by from_body):
        title, content  required and truthy, converted with to_text()
        authorId        to_text() when present, None when absent or null
        tags            each item to_text()-ed when a list, otherwise []
        published       bool()
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    author_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool = False

    @classmethod
    def from_body(cls, body: Any) -> "PostCreate":
        """
        Validate and coerce a decoded JSON body.

        A body that is not a JSON object is treated as empty.

        Raises:
            ValidationError: title or content missing or falsy (→ 400)
        """
        data = body if isinstance(body, dict) else {}

        title = data.get("title")
        content = data.get("content")
        if not title or not content:
            missing = [name for name, value in (("title", title), ("content", content)) if not value]
            raise ValidationError(
                message=REQUIRED_FIELDS_MESSAGE,
                context={"missing": missing},
            )

        author_id = data.get("authorId")
        tags = data.get("tags")

        return cls(
            title=to_text(title),
            content=to_text(content),
            author_id=None if author_id is None else to_text(author_id),
            tags=[to_text(tag) for tag in tags] if isinstance(tags, list) else [],
            published=bool(data.get("published")),
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Envelopes
# ══════════════════════════════════════════════════════════════════════════


class PostEnvelope(BaseModel):
    """Returned by POST /api/blogs with HTTP 201."""

    success: bool = True
    data: Post


class PostListEnvelope(BaseModel):
    """Returned by GET /api/blogs, newest post first."""

    success: bool = True
    data: List[Post]


class ErrorEnvelope(BaseModel):
    """
    Uniform failure body for every error status.

    The presentation layer displays `error` as-is; the kind of failure is
    not recoverable from the payload.
    """

    success: bool = False
    error: str


class HealthResponse(BaseModel):
    """Returned by GET /health."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
