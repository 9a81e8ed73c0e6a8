"""
Quillpost Backend — Post Repository
=====================================

What:  Create and list operations over the Cosmos `posts` container.
How:   Translates between Post models and stored camelCase documents.
       Every store failure is wrapped in PersistenceError carrying the
       underlying message text.
Who:   Called by the /api/blogs route handlers with the shared connection.

Query plan (list):
    SELECT * FROM c ORDER BY c.createdAt DESC
    → cross-partition query; createdAt is covered by the default range index
"""

import logging
from typing import Any, Dict, List

import pydantic

from app.database import DatabaseConnection
from app.exceptions import PersistenceError
from app.models.post import Post, utc_now
from app.schemas.post import PostCreate

logger = logging.getLogger(__name__)

LIST_POSTS_QUERY = "SELECT * FROM c ORDER BY c.createdAt DESC"
MALFORMED_DOCUMENT_MESSAGE = "stored post document is malformed"


def _parse_document(document: Dict[str, Any]) -> Post:
    """Parse a stored document, reporting bad data as a store failure."""
    try:
        return Post.model_validate(document)
    except pydantic.ValidationError as e:
        document_id = document.get("id") if isinstance(document, dict) else None
        logger.error("Malformed post document %s: %s", document_id, str(e))
        raise PersistenceError(
            message=MALFORMED_DOCUMENT_MESSAGE,
            context={
                "post_id": document_id,
                "fields": [".".join(str(part) for part in err["loc"]) for err in e.errors()],
            },
        ) from e


class PostRepository:
    """
    Data access for posts.

    Stateless: the connection is passed to each call, so the same instance
    serves every request.
    """

    async def list_posts(self, connection: DatabaseConnection) -> List[Post]:
        """
        Return every post, newest first.

        Ordering comes only from the stored createdAt value, never from the
        order in which requests arrived. No pagination.

        Raises:
            PersistenceError: the read failed or a stored document does not parse as a Post
        """
        try:
            items = connection.container.query_items(query=LIST_POSTS_QUERY)
            documents = [document async for document in items]
        except Exception as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise PersistenceError(
                message=str(e) or "Could not retrieve posts",
                context={"error_type": type(e).__name__},
            ) from e

        logger.debug("Fetched %d posts", len(documents))
        return [_parse_document(document) for document in documents]

    async def create_post(self, connection: DatabaseConnection, attrs: PostCreate) -> Post:
        """
        Build, persist and return a new post.

        created_at/updated_at are assigned here; defaults for tags and
        published come from PostCreate. The returned Post is parsed from the
        document the store sends back.

        Raises:
            PersistenceError: the store rejected the write or sent back a
                document that does not parse as a Post
        """
        post = Post.build(
            title=attrs.title,
            content=attrs.content,
            author_id=attrs.author_id,
            tags=attrs.tags,
            published=attrs.published,
            now=utc_now(),
        )

        try:
            stored = await connection.container.create_item(body=post.to_document())
        except Exception as e:
            logger.error("Database error creating post %s: %s", post.id, str(e), exc_info=True)
            raise PersistenceError(
                message=str(e) or "Could not save the post",
                context={"post_id": post.id, "error_type": type(e).__name__},
            ) from e

        logger.info("Post created: %s", post.id)
        return _parse_document(stored)


# ── Singleton Instance ────────────────────────────────────────────────────
post_repository = PostRepository()
