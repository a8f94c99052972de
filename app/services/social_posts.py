# app/services/social_posts.py
"""
Scheduled social-media posts of a project and their status workflow.

    draft -> scheduled -> published
      |         |
      +-> cancelled <-+

A scheduled post can be moved back to draft and a cancelled one restored to
draft. Nothing leaves published.
"""

import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

from app.errors import HubError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.social_post import PostStatus
from app.schemas.profile import CurrentUser
from app.schemas.social_post import SocialPostCreate, SocialPostOut, SocialPostUpdate
from app.services.live_state import LiveState
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

TRANSITIONS = {
    PostStatus.DRAFT: {PostStatus.SCHEDULED, PostStatus.CANCELLED},
    PostStatus.SCHEDULED: {PostStatus.PUBLISHED, PostStatus.CANCELLED, PostStatus.DRAFT},
    PostStatus.CANCELLED: {PostStatus.DRAFT},
    PostStatus.PUBLISHED: set(),
}


def can_transition(current: PostStatus, new: PostStatus) -> bool:
    return current == new or new in TRANSITIONS[PostStatus(current)]


def validate_transition(current: PostStatus, new: PostStatus) -> None:
    if not can_transition(current, new):
        raise ValidationError(f"Cannot move a post from {PostStatus(current).value} to {PostStatus(new).value}")


def _sort_key(post: SocialPostOut):
    return (post.scheduled_date, post.scheduled_time or time.min, post.id)


class SocialPostBoard(LiveState):
    """Posts of one project ordered by schedule, as shown on the Kanban board"""

    def __init__(self, gateway, project_id: int, actor: Optional[CurrentUser] = None, loading_timeout: Optional[float] = None):
        super().__init__(loading_timeout)
        self.gateway = gateway
        self.project_id = project_id
        self.actor = actor
        self.posts: List[SocialPostOut] = []

    @classmethod
    async def for_post(cls, gateway, post_id: int, actor: Optional[CurrentUser] = None) -> "SocialPostBoard":
        row = (await gateway.select_one("social_media_posts", {"id": post_id})).unwrap()
        if row is None:
            raise NotFoundError("Post not found")
        board = cls(gateway, row["project_id"], actor)
        board.posts = [SocialPostOut.model_validate(row)]
        return board

    def _require_admin(self) -> None:
        if self.actor is None or not self.actor.is_admin:
            raise PermissionDeniedError("Only admins can manage social posts")

    def _find(self, post_id: int) -> Optional[SocialPostOut]:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    def _put(self, post: SocialPostOut) -> None:
        self.posts = sorted([p for p in self.posts if p.id != post.id] + [post], key=_sort_key)

    async def _get(self, post_id: int) -> SocialPostOut:
        post = self._find(post_id)
        if post is not None:
            return post
        row = self._check(await self.gateway.select_one("social_media_posts", {"id": post_id}))
        if row is None or row["project_id"] != self.project_id:
            raise NotFoundError("Post not found")
        return SocialPostOut.model_validate(row)

    async def fetch_posts(self) -> List[SocialPostOut]:
        async def fetch():
            rows = self._check(await self.gateway.select(
                "social_media_posts",
                {"project_id": self.project_id},
                order_by=("scheduled_date", "scheduled_time", "id"),
            ))
            self.posts = sorted((SocialPostOut.model_validate(row) for row in rows), key=_sort_key)
            return self.posts

        return await self._load(fetch())

    async def create_post(self, data: SocialPostCreate) -> SocialPostOut:
        self._require_admin()
        row = data.model_dump(mode="python")
        row["platform"] = data.platform.value
        row["status"] = data.status.value
        row["project_id"] = self.project_id
        if data.status == PostStatus.PUBLISHED:
            row["published_at"] = utcnow()

        created = SocialPostOut.model_validate(self._check(await self.gateway.insert("social_media_posts", row)))
        self._put(created)
        logger.info(f"Social post {created.id} created for project {self.project_id} as {created.status.value}")
        return created

    async def update_post(self, post_id: int, data: SocialPostUpdate) -> SocialPostOut:
        self._require_admin()
        await self._get(post_id)
        patch = data.model_dump(exclude_unset=True)
        if "platform" in patch and patch["platform"] is not None:
            patch["platform"] = data.platform.value
        for required in ("title", "platform", "scheduled_date"):
            if required in patch and patch[required] is None:
                raise ValidationError(f"{required} is required")
        if not patch:
            return await self._get(post_id)

        rows = self._check(await self.gateway.update("social_media_posts", {"id": post_id}, patch))
        if not rows:
            raise NotFoundError("Post not found")
        updated = SocialPostOut.model_validate(rows[0])
        self._put(updated)
        return updated

    async def _transition(self, post: SocialPostOut, status: PostStatus) -> SocialPostOut:
        validate_transition(post.status, status)
        if post.status == status:
            return post

        patch: Dict[str, Any] = {"status": status.value}
        if status == PostStatus.PUBLISHED:
            patch["published_at"] = utcnow()

        rows = self._check(await self.gateway.update("social_media_posts", {"id": post.id}, patch))
        if not rows:
            raise NotFoundError("Post not found")
        logger.info(f"Social post {post.id} moved from {post.status.value} to {status.value}")
        return SocialPostOut.model_validate(rows[0])

    async def update_status(self, post_id: int, status: PostStatus) -> SocialPostOut:
        self._require_admin()
        post = await self._get(post_id)
        updated = await self._transition(post, PostStatus(status))
        self._put(updated)
        return updated

    async def drop_post(self, post_id: int, column: PostStatus) -> SocialPostOut:
        """
        Handle a card dropped on a Kanban column.

        Dropping on the card's own column does nothing. Otherwise the card is
        moved right away and moved back if persisting the new status fails.
        """
        column = PostStatus(column)
        post = await self._get(post_id)
        if post.status == column:
            return post
        self._require_admin()
        validate_transition(post.status, column)

        self._put(post.model_copy(update={"status": column}))
        try:
            updated = await self._transition(post, column)
        except HubError:
            self._put(post)
            raise
        self._put(updated)
        return updated

    async def delete_post(self, post_id: int) -> None:
        self._require_admin()
        await self._get(post_id)
        self._check(await self.gateway.delete("social_media_posts", {"id": post_id}))
        self.posts = [p for p in self.posts if p.id != post_id]

    def posts_by_status(self, status: PostStatus) -> List[SocialPostOut]:
        return [p for p in self.posts if p.status == PostStatus(status)]

    def posts_by_date(self, day: date) -> List[SocialPostOut]:
        return [p for p in self.posts if p.scheduled_date == day]

    def posts_for_month(self, year: int, month: int) -> List[SocialPostOut]:
        return [p for p in self.posts if p.scheduled_date.year == year and p.scheduled_date.month == month]

    def columns(self) -> Dict[str, List[SocialPostOut]]:
        return {status.value: self.posts_by_status(status) for status in PostStatus}
