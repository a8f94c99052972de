# app/routers/comments.py
from fastapi import APIRouter, Depends
from typing import List

from app.schemas.comment import CommentCreate, CommentOut, CommentUpdate
from app.schemas.profile import CurrentUser
from app.services.comment_thread import CommentThread
from app.services.projects import get_project
from app.utils.auth import get_current_user, get_gateway

router = APIRouter(tags=["comments"])


@router.get("/projects/{project_id}/comments", response_model=List[CommentOut])
async def get_project_comments(
    project_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get the comment tree of a project"""
    await get_project(gateway, project_id)
    thread = CommentThread(gateway, project_id, current_user)
    return await thread.initialize()


@router.post("/projects/{project_id}/comments", response_model=CommentOut, status_code=201)
async def add_project_comment(
    project_id: int,
    comment: CommentCreate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Add a comment, or a reply when parent_id is given"""
    await get_project(gateway, project_id)
    thread = CommentThread(gateway, project_id, current_user)
    return await thread.add_comment(comment.content, comment.parent_id, comment.mentions)


@router.patch("/comments/{comment_id}", response_model=CommentOut)
async def update_comment(
    comment_id: int,
    comment: CommentUpdate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Edit a comment (author or admin)"""
    thread = await CommentThread.for_comment(gateway, comment_id, current_user)
    return await thread.update_comment(comment_id, comment.content)


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete a comment and its replies (author or admin)"""
    thread = await CommentThread.for_comment(gateway, comment_id, current_user)
    await thread.delete_comment(comment_id)
    return {"message": "Comment deleted successfully"}
