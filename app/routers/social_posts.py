# app/routers/social_posts.py
from fastapi import APIRouter, Depends, Query
from typing import Dict, List, Optional

from app.models.social_post import PostStatus
from app.schemas.profile import CurrentUser
from app.schemas.social_post import SocialPostCreate, SocialPostOut, SocialPostUpdate, StatusUpdate
from app.services.projects import get_project
from app.services.social_posts import SocialPostBoard
from app.utils.auth import get_current_user, get_gateway

router = APIRouter(tags=["social posts"])


@router.get("/projects/{project_id}/social-posts", response_model=List[SocialPostOut])
async def get_social_posts(
    project_id: int,
    status: Optional[PostStatus] = Query(None),
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get the posts of a project ordered by schedule"""
    await get_project(gateway, project_id)
    board = SocialPostBoard(gateway, project_id, current_user)
    await board.fetch_posts()
    return board.posts_by_status(status) if status else board.posts


@router.get("/projects/{project_id}/social-posts/board", response_model=Dict[str, List[SocialPostOut]])
async def get_social_post_board(
    project_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get the posts of a project grouped by status column"""
    await get_project(gateway, project_id)
    board = SocialPostBoard(gateway, project_id, current_user)
    await board.fetch_posts()
    return board.columns()


@router.post("/projects/{project_id}/social-posts", response_model=SocialPostOut, status_code=201)
async def create_social_post(
    project_id: int,
    post: SocialPostCreate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Create a post, as a draft unless another status is given"""
    await get_project(gateway, project_id)
    board = SocialPostBoard(gateway, project_id, current_user)
    return await board.create_post(post)


@router.patch("/social-posts/{post_id}", response_model=SocialPostOut)
async def update_social_post(
    post_id: int,
    post: SocialPostUpdate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    board = await SocialPostBoard.for_post(gateway, post_id, current_user)
    return await board.update_post(post_id, post)


@router.patch("/social-posts/{post_id}/status", response_model=SocialPostOut)
async def update_social_post_status(
    post_id: int,
    update: StatusUpdate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Move a post to another status"""
    board = await SocialPostBoard.for_post(gateway, post_id, current_user)
    return await board.update_status(post_id, update.status)


@router.post("/social-posts/{post_id}/drop", response_model=SocialPostOut)
async def drop_social_post(
    post_id: int,
    update: StatusUpdate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """A post card dropped on a Kanban column"""
    board = await SocialPostBoard.for_post(gateway, post_id, current_user)
    return await board.drop_post(post_id, update.status)


@router.delete("/social-posts/{post_id}")
async def delete_social_post(
    post_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    board = await SocialPostBoard.for_post(gateway, post_id, current_user)
    await board.delete_post(post_id)
    return {"message": "Post deleted successfully"}
