"""
Quillpost Backend — Blog Route Handlers
=========================================

What:  GET /api/blogs (list) and POST /api/blogs (create).
How:   Validate input, get the shared connection, delegate to PostRepository,
       wrap the result in the success envelope.
Who:   Called by the frontend blog page and by app.client.BlogClient.

Request flow (POST):
    body → PostCreate.from_body() → connection_manager.get_connection()
         → post_repository.create_post() → 201 {"success": true, "data": post}

    Validation runs before the connection is requested, so a 400 never
    touches the database. Errors are not handled here: they propagate to the
    exception handlers in main.py, which return the error envelope.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from app.database import ConnectionManager, get_connection_manager
from app.exceptions import ValidationError
from app.schemas.post import ErrorEnvelope, PostCreate, PostEnvelope, PostListEnvelope
from app.services.post_repository import post_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Blogs"])


@router.get(
    "/blogs",
    response_model=PostListEnvelope,
    responses={
        200: {"description": "All posts, newest first", "model": PostListEnvelope},
        500: {"description": "Server error", "model": ErrorEnvelope},
    },
    summary="List blog posts",
)
async def list_blogs(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> PostListEnvelope:
    """Return every post ordered by createdAt descending. No pagination."""
    connection = await manager.get_connection()
    posts = await post_repository.list_posts(connection)
    return PostListEnvelope(data=posts)


@router.post(
    "/blogs",
    status_code=201,
    response_model=PostEnvelope,
    responses={
        201: {"description": "Post created", "model": PostEnvelope},
        400: {"description": "title and content are required", "model": ErrorEnvelope},
        500: {"description": "Server error", "model": ErrorEnvelope},
    },
    summary="Create a blog post",
    description=(
        "Body: {title, content, authorId?, tags?, published?}. "
        "title and content must be present and non-empty."
    ),
)
async def create_blog(
    request: Request,
    manager: ConnectionManager = Depends(get_connection_manager),
) -> PostEnvelope:
    """
    Create a post from the JSON body.

    The body is read by hand rather than declared as a Pydantic parameter:
    FastAPI would reject bad input with its own 422 format, while this
    endpoint answers 400 with the error envelope.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(message="request body must be valid JSON", field="body")

    attrs = PostCreate.from_body(body)

    connection = await manager.get_connection()
    post = await post_repository.create_post(connection, attrs)
    return PostEnvelope(data=post)
