"""
Quillpost Backend — Post Document Model
=========================================

What:  Pydantic model for a blog post as stored in the `posts` container.
How:   Python attributes are snake_case; the stored/wire form is camelCase
       (authorId, createdAt, updatedAt) via an alias generator.
Who:   Built by PostRepository on create; parsed from stored documents on read;
       serialized inside the API envelopes.

Document shape:
    {
        "id": "3f0c9a7e6b2d4c1e8a5f0b9d7c6e4a21",
        "title": "Hello",
        "content": "World",
        "authorId": null,
        "tags": [],
        "published": false,
        "createdAt": "2026-10-19T14:03:12.402117Z",
        "updatedAt": "2026-10-19T14:03:12.402117Z"
    }

Timestamps are stored as fixed-width UTC strings so that ORDER BY on the
string field is chronological.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as a fixed-width UTC string (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class Post(BaseModel):
    """
    A blog post.

    Lifecycle:
        Created by POST /api/blogs. There is no update or delete path, so
        updated_at equals created_at for every post this service writes.

    Unknown keys (the store's _rid, _etag, _ts, _self, _attachments) are
    ignored when a stored document is parsed, and so never reach API clients.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    author_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool = False
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    @classmethod
    def build(
        cls,
        *,
        title: str,
        content: str,
        author_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        published: bool = False,
        now: Optional[datetime] = None,
    ) -> "Post":
        """
        Construct a new, not-yet-persisted post.

        Assigns a UUID4 id and sets created_at/updated_at to the same instant.
        Tags are copied so later changes to the caller's list do not leak in.
        """
        timestamp = now or utc_now()
        return cls(
            id=uuid.uuid4().hex,
            title=title,
            content=content,
            author_id=author_id,
            tags=list(tags) if tags else [],
            published=published,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def to_document(self) -> dict:
        """The JSON-ready camelCase document written to the store."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r}, created_at='{self.created_at}')>"
